"""이미지 압축 엔진.

원본 바이트를 디코딩하고, 너무 큰 이미지는 줄인 뒤, 입력과 같은 형식으로
다시 인코딩해 바이트를 돌려준다. 형식 변환은 하지 않는다.

형식별 인코딩:
    jpeg/jpg  손실 압축. quality는 요청값 (JPEG_FIXED_QUALITY가 있으면 그 값)
    png       EXIF 방향 보정 후 최대 압축 (무손실, quality 무관)
    webp      무손실. quality는 압축 노력(effort)으로만 쓰이고 픽셀은 그대로

엔진은 상태가 없다. 설정(EngineConfig)은 생성자로 주입한다.
"""

import gc
import io
from collections.abc import Callable

from loguru import logger
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from core.exceptions import DecodeError, InvalidQuality, UnsupportedFormatError
from processor import operations
from processor.formats import normalize_content_type
from utility.timer import timer

# 픽셀 수 상한은 Pillow 전역값이 아니라 EngineConfig.max_image_pixels로 건다
Image.MAX_IMAGE_PIXELS = None


class EngineConfig(BaseModel):
    max_dimension: int = 8000
    max_image_pixels: int | None = 500_000_000
    jpeg_fixed_quality: int | None = None
    large_input_bytes: int = 10 * 1024 * 1024

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            max_dimension=settings.MAX_DIMENSION,
            max_image_pixels=settings.MAX_IMAGE_PIXELS,
            jpeg_fixed_quality=settings.JPEG_FIXED_QUALITY,
            large_input_bytes=settings.LARGE_INPUT_BYTES,
        )


class CompressionEngine:
    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._encoders: dict[str, Callable[[Image.Image, int], bytes]] = {
            "image/jpeg": self._encode_jpeg,
            "image/jpg": self._encode_jpeg,
            "image/png": self._encode_png,
            "image/webp": self._encode_webp,
        }

    def compress(self, data: bytes, content_type: str, quality: int) -> bytes:
        """이미지 바이트를 같은 형식으로 재인코딩한다.

        Raises:
            UnsupportedFormatError: jpeg/jpg/png/webp가 아니거나 그 형식으로 저장할 수 없는 경우
            DecodeError: 바이트가 이미지가 아니거나 max_image_pixels를 넘는 경우
            InvalidQuality: quality가 1~100 밖인 경우
        """
        normalized = normalize_content_type(content_type)
        encoder = self._encoders.get(normalized)
        if encoder is None:
            raise UnsupportedFormatError(f"지원하지 않는 이미지 형식: {content_type}")
        if not 1 <= quality <= 100:
            raise InvalidQuality(f"quality는 1~100 범위여야 합니다: {quality}")

        logger.info(f"Compressing {normalized} image ({len(data):,} bytes, quality={quality})")

        image, (width, height) = self._decode(data)
        if len(data) > self.config.large_input_bytes:
            # 디코딩 중 생긴 임시 버퍼를 바로 회수
            gc.collect()

        cap = self.config.max_dimension
        if width > cap or height > cap:
            # 목표 크기는 헤더의 원본 크기 기준 (draft로 먼저 줄었어도 결과는 같다)
            target = operations.scaled_size(width, height, cap)
            logger.info(f"Large image detected ({width}x{height}), resizing to {target[0]}x{target[1]}")
            image = operations.resize(image, *target)

        try:
            with timer(f"encode {normalized}"):
                compressed = encoder(image, quality)
        except (OSError, KeyError, ValueError) as e:
            raise UnsupportedFormatError(
                f"{image.mode} 이미지를 {normalized} 형식으로 저장할 수 없습니다: {e}"
            ) from e

        logger.info(
            f"Compression completed. Original: {len(data):,} bytes, "
            f"Compressed: {len(compressed):,} bytes"
        )
        return compressed

    def _decode(self, data: bytes) -> tuple[Image.Image, tuple[int, int]]:
        """디코딩한 이미지와 헤더상의 원본 크기를 돌려준다.

        픽셀 수 상한은 Pillow 전역값 대신 config.max_image_pixels로 검사한다.
        JPEG은 draft()로 DCT 단계에서 미리 줄여 디코딩 메모리를 아낀다.
        """
        try:
            image = Image.open(io.BytesIO(data))
            size = image.size
            limit = self.config.max_image_pixels
            if limit is not None and size[0] * size[1] > limit:
                raise DecodeError(
                    f"이미지가 너무 큽니다 ({size[0]}x{size[1]}, 최대 {limit:,} pixels)"
                )
            cap = self.config.max_dimension
            if image.format == "JPEG" and (size[0] > cap or size[1] > cap):
                image.draft(image.mode, operations.scaled_size(size[0], size[1], cap))
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"이미지를 디코딩할 수 없습니다 ({len(data):,} bytes): {e}") from e
        return image, size

    def _encode_jpeg(self, image: Image.Image, quality: int) -> bytes:
        effective = self.config.jpeg_fixed_quality or quality
        buf = io.BytesIO()
        operations.to_jpeg_mode(image).save(buf, format="JPEG", quality=effective, optimize=True)
        return buf.getvalue()

    def _encode_png(self, image: Image.Image, quality: int) -> bytes:
        buf = io.BytesIO()
        image = operations.to_png_mode(operations.auto_orient(image))
        image.save(buf, format="PNG", optimize=True, compress_level=9)
        return buf.getvalue()

    def _encode_webp(self, image: Image.Image, quality: int) -> bytes:
        buf = io.BytesIO()
        operations.to_webp_mode(image).save(buf, format="WEBP", lossless=True, quality=quality)
        return buf.getvalue()
