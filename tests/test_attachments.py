"""Tests for image attachment validation and encoding."""

from __future__ import annotations

import base64
from pathlib import Path
import tempfile
import unittest

from playground_chat.attachments import encode_image, validate_image
from playground_chat.exceptions import AttachmentError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class AttachmentTests(unittest.TestCase):
    """Validate the file checks behind /attach."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.image = self.root / "cat.png"
        self.image.write_bytes(PNG_BYTES)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_encode_produces_data_uri(self) -> None:
        data_uri = encode_image(str(self.image))
        prefix = "data:image/png;base64,"
        self.assertTrue(data_uri.startswith(prefix))
        self.assertEqual(base64.b64decode(data_uri[len(prefix):]), PNG_BYTES)

    def test_missing_file(self) -> None:
        with self.assertRaisesRegex(AttachmentError, "Image not found"):
            validate_image(str(self.root / "nope.png"))

    def test_directory_is_rejected(self) -> None:
        folder = self.root / "folder.png"
        folder.mkdir()
        with self.assertRaisesRegex(AttachmentError, "Not a file"):
            validate_image(str(folder))

    def test_wrong_extension(self) -> None:
        text_file = self.root / "notes.txt"
        text_file.write_text("hello", encoding="utf-8")
        with self.assertRaisesRegex(AttachmentError, "Invalid image type"):
            validate_image(str(text_file))

    def test_size_limit(self) -> None:
        with self.assertRaisesRegex(AttachmentError, "Image too large"):
            validate_image(str(self.image), max_bytes=4)


if __name__ == "__main__":
    unittest.main()
