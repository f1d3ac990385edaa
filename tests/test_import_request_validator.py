from __future__ import annotations

import unittest

from app.config import MassImportSettings
from app.sanitizers import sanitize_markdown
from app.validators.import_request_validator import (
    ImportRequestValidator,
    ImportValidationError,
    ValidationCode,
    format_location,
)
from tests.conftest import make_artist, make_artwork, make_payload


class TestImportRequestValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = ImportRequestValidator(MassImportSettings(max_batch_size=10, max_records_per_request=5))

    def _errors(self, payload: object) -> dict[str, str]:
        with self.assertRaises(ImportValidationError) as ctx:
            self.validator.validate(payload)
        return {error.field: error.code for error in ctx.exception.errors}

    def test_accepts_minimal_artwork_request(self) -> None:
        request = self.validator.validate(make_payload(artworks=[make_artwork()]))

        self.assertEqual(request.metadata.import_id, "import-001")
        self.assertEqual(request.metadata.source.plugin_name, "vancouver-open-data")
        self.assertEqual(len(request.data.artworks), 1)
        self.assertIsNone(request.config.duplicate_threshold)
        self.assertFalse(request.config.enable_tag_merging)

    def test_threshold_above_one_is_rejected(self) -> None:
        errors = self._errors(make_payload(artworks=[make_artwork()], config={"duplicateThreshold": 1.5}))

        self.assertEqual(errors, {"config.duplicateThreshold": ValidationCode.INVALID_RANGE})

    def test_collects_every_structural_error(self) -> None:
        payload = make_payload(
            artworks=[
                make_artwork(lat=95.0),
                make_artwork(title="", lon=-200.0),
            ],
            config={"batchSize": 0},
        )

        errors = self._errors(payload)

        self.assertEqual(errors["data.artworks[0].lat"], ValidationCode.COORDINATES_OUT_OF_RANGE)
        self.assertEqual(errors["data.artworks[1].title"], ValidationCode.REQUIRED_FIELD)
        self.assertEqual(errors["data.artworks[1].lon"], ValidationCode.COORDINATES_OUT_OF_RANGE)
        self.assertEqual(errors["config.batchSize"], ValidationCode.INVALID_RANGE)

    def test_batch_size_above_configured_maximum_is_rejected(self) -> None:
        errors = self._errors(make_payload(artworks=[make_artwork()], config={"batchSize": 11}))

        self.assertEqual(errors, {"config.batchSize": ValidationCode.INVALID_RANGE})

    def test_empty_data_is_rejected(self) -> None:
        errors = self._errors(make_payload())

        self.assertEqual(errors, {"data": ValidationCode.EMPTY_DATA})

    def test_too_many_records_is_rejected(self) -> None:
        payload = make_payload(artworks=[make_artwork(lat=49.0 + i / 10) for i in range(6)])

        errors = self._errors(payload)

        self.assertEqual(errors, {"data": ValidationCode.BATCH_TOO_LARGE})

    def test_length_limits(self) -> None:
        payload = make_payload(
            artworks=[
                make_artwork(
                    title="t" * 201,
                    description="d" * 10001,
                    artist="a" * 501,
                )
            ]
        )

        errors = self._errors(payload)

        self.assertEqual(errors["data.artworks[0].title"], ValidationCode.FIELD_TOO_LONG)
        self.assertEqual(errors["data.artworks[0].description"], ValidationCode.FIELD_TOO_LONG)
        self.assertEqual(errors["data.artworks[0].artist"], ValidationCode.FIELD_TOO_LONG)

    def test_photo_rules(self) -> None:
        too_many = make_artwork(photos=[f"https://img.example.org/{i}.jpg" for i in range(11)])
        bad_url = make_artwork(photos=["not a url", {"url": "ftp://img.example.org/a.jpg"}])

        errors = self._errors(make_payload(artworks=[too_many, bad_url]))

        self.assertEqual(errors["data.artworks[0].photos"], ValidationCode.TOO_MANY_PHOTOS)
        self.assertEqual(errors["data.artworks[1].photos[0].url"], ValidationCode.INVALID_URL)
        self.assertEqual(errors["data.artworks[1].photos[1].url"], ValidationCode.INVALID_URL)

    def test_null_island_is_rejected(self) -> None:
        errors = self._errors(make_payload(artworks=[make_artwork(lat=0.0, lon=0.0)]))

        self.assertEqual(errors, {"data.artworks[0]": ValidationCode.COORDINATES_NULL_ISLAND})

    def test_missing_metadata_is_required_field(self) -> None:
        payload = make_payload(artworks=[make_artwork()])
        del payload["metadata"]

        errors = self._errors(payload)

        self.assertEqual(errors, {"metadata": ValidationCode.REQUIRED_FIELD})

    def test_non_object_body_is_invalid_json(self) -> None:
        errors = self._errors(["not", "an", "object"])

        self.assertEqual(errors, {"body": ValidationCode.INVALID_JSON})

    def test_bare_photo_urls_and_creator_name_alias(self) -> None:
        payload = make_payload(
            artworks=[make_artwork(photos=["https://img.example.org/mural.jpg"], createdBy="Smith, John")],
            artists=[{"recordType": "artist", "name": "Jane Doe", "source": "vancouver-open-data"}],
        )

        request = self.validator.validate(payload)

        artwork = request.data.artworks[0]
        self.assertEqual(artwork.photo_references()[0].url, "https://img.example.org/mural.jpg")
        self.assertEqual(artwork.creator_field, "Smith, John")
        self.assertEqual(request.data.artists[0].name, "Jane Doe")

    def test_description_is_sanitized(self) -> None:
        payload = make_payload(
            artworks=[make_artwork(description='A **mural**<script>alert(1)</script> <img src="x" onerror="boom()">')]
        )

        request = self.validator.validate(payload)

        description = request.data.artworks[0].description
        self.assertNotIn("<script", description)
        self.assertNotIn("onerror", description)
        self.assertIn("**mural**", description)

    def test_description_sanitizer_handles_malformed_markup(self) -> None:
        cases = [
            "<img src=x onerror=alert(1)>",
            "<script>alert(1)",
            "<svg/onload=alert(1)>",
            '<a href="javascript:alert(1)">link</a>',
            "<iframe src=https://evil.example.org></iframe>",
        ]

        for raw in cases:
            with self.subTest(raw=raw):
                cleaned = sanitize_markdown(f"Mural {raw}")
                self.assertTrue(cleaned.startswith("Mural"))
                self.assertNotIn("onerror", cleaned)
                self.assertNotIn("onload", cleaned)
                self.assertNotIn("<script", cleaned)
                self.assertNotIn("<svg", cleaned)
                self.assertNotIn("<iframe", cleaned)
                self.assertNotIn("javascript:", cleaned)
                self.assertNotIn("alert(1)", cleaned)

    def test_error_payload_shape(self) -> None:
        with self.assertRaises(ImportValidationError) as ctx:
            self.validator.validate(make_payload(artworks=[make_artwork()], config={"duplicateThreshold": 1.5}))

        body = ctx.exception.to_dict()
        self.assertIn("config.duplicateThreshold", body["message"])
        self.assertEqual(body["errors"][0]["field"], "config.duplicateThreshold")
        self.assertEqual(body["errors"][0]["code"], ValidationCode.INVALID_RANGE)


class TestFormatLocation(unittest.TestCase):
    def test_renders_indexes_in_brackets(self) -> None:
        self.assertEqual(format_location(("data", "artworks", 3, "photos", 0, "url")), "data.artworks[3].photos[0].url")

    def test_empty_location_is_body(self) -> None:
        self.assertEqual(format_location(()), "body")


if __name__ == "__main__":
    unittest.main()
