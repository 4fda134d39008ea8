import base64
import io
import unittest
from unittest.mock import patch

from PIL import Image

from checkin_backend import photos
from checkin_backend.photos import decode_data_url, normalize_photo


def data_url(img, fmt="PNG"):
    out = io.BytesIO()
    img.save(out, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return f"data:{mime};base64," + base64.b64encode(out.getvalue()).decode("ascii")


def open_data_url(url):
    return Image.open(io.BytesIO(decode_data_url(url)))


class NormalizePhotoTests(unittest.TestCase):
    def test_crops_to_square_and_downsizes(self):
        result = normalize_photo(data_url(Image.new("RGB", (1200, 800), "blue")), size=256)
        self.assertTrue(result.startswith("data:image/jpeg;base64,"))
        with open_data_url(result) as img:
            self.assertEqual(img.format, "JPEG")
            self.assertEqual(img.size, (256, 256))

    def test_small_image_is_not_upscaled(self):
        result = normalize_photo(data_url(Image.new("RGB", (50, 80), "red")), size=256)
        with open_data_url(result) as img:
            self.assertEqual(img.size, (50, 50))

    def test_transparent_png_becomes_rgb(self):
        result = normalize_photo(data_url(Image.new("RGBA", (64, 64), (0, 0, 0, 0))))
        with open_data_url(result) as img:
            self.assertEqual(img.mode, "RGB")

    def test_rejects_non_data_url(self):
        with self.assertRaises(ValueError):
            normalize_photo("https://example.com/me.jpg")

    def test_rejects_garbage_payload(self):
        payload = base64.b64encode(b"definitely not an image").decode("ascii")
        with self.assertRaises(ValueError):
            normalize_photo(f"data:image/png;base64,{payload}")

    def test_decompression_bomb_is_rejected(self):
        url = data_url(Image.new("1", (100, 100)))
        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            with self.assertRaises(ValueError):
                normalize_photo(url)

    def test_too_many_pixels_rejected_before_decoding(self):
        url = data_url(Image.new("RGB", (30, 30)))
        with patch.object(photos, "MAX_PIXELS", 500):
            with self.assertRaises(ValueError):
                normalize_photo(url)

    def test_oversized_payload_rejected(self):
        with self.assertRaises(ValueError):
            decode_data_url("data:image/png;base64," + "A" * photos.MAX_DATA_URL_LENGTH)


if __name__ == "__main__":
    unittest.main()
