"""
순수 CPU-bound 이미지 처리 함수.
모든 함수는 PIL.Image를 받아서 PIL.Image를 반환한다.
"""

import math

from PIL import Image, ImageOps


def resize(image: Image.Image, width: int, height: int) -> Image.Image:
    return image.resize((width, height), Image.Resampling.LANCZOS)


def scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """긴 변이 max_dimension이 되도록 비율을 유지한 크기 (소수점 버림)."""
    scale = max_dimension / max(width, height)
    return max(1, math.floor(width * scale)), max(1, math.floor(height * scale))


def auto_orient(image: Image.Image) -> Image.Image:
    """EXIF Orientation 태그대로 회전시키고 태그를 제거한다."""
    return ImageOps.exif_transpose(image)


def to_jpeg_mode(image: Image.Image) -> Image.Image:
    # JPEG은 알파/팔레트를 저장할 수 없다
    if image.mode in ("RGB", "L", "CMYK"):
        return image
    return image.convert("RGB")


def to_webp_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    has_alpha = "A" in image.mode or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


PNG_MODES = ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA")


def to_png_mode(image: Image.Image) -> Image.Image:
    # CMYK, YCbCr, LAB 등은 PNG에 저장할 수 없다
    if image.mode in PNG_MODES:
        return image
    if image.mode == "F":
        return image.convert("I")
    has_alpha = "A" in image.mode or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")
