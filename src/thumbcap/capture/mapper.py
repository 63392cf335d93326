"""논리 좌표 선택 영역 → 캡처 픽셀 좌표 변환."""

from __future__ import annotations

import math

from thumbcap.models import PixelCropRegion, RawCapture, SelectionBounds, ViewportMetrics


def _round_half_up(value: float) -> int:
    # 0.5는 항상 올림 (banker's rounding 아님)
    return int(math.floor(value + 0.5))


def map_selection(
    selection: SelectionBounds,
    viewport: ViewportMetrics,
    raw: RawCapture,
) -> PixelCropRegion:
    """선택 영역을 RawCapture 픽셀 영역으로 변환한다.

    scale_x/scale_y가 device pixel ratio와 뷰포트/캡처 크기 차이를 모두 흡수한다.
    x, y는 캡처 범위로, width/height는 남은 범위로 각각 잘라낸다.
    경계 밖으로 나간 선택은 비율이 줄어든 영역이 될 수 있다.
    """
    scale_x = raw.pixel_width / viewport.logical_width
    scale_y = raw.pixel_height / viewport.logical_height

    scaled_x = _round_half_up(selection.x * scale_x)
    scaled_y = _round_half_up(selection.y * scale_y)
    scaled_width = _round_half_up(selection.width * scale_x)
    scaled_height = _round_half_up(selection.height * scale_y)

    x = max(0, min(scaled_x, raw.pixel_width - 1))
    y = max(0, min(scaled_y, raw.pixel_height - 1))
    width = max(0, min(scaled_width, raw.pixel_width - x))
    height = max(0, min(scaled_height, raw.pixel_height - y))

    return PixelCropRegion(x=x, y=y, width=width, height=height)


def region_within(region: PixelCropRegion, pixel_width: int, pixel_height: int) -> bool:
    """영역이 캡처 범위 안에 있는지 확인한다."""
    if region.x < 0 or region.y < 0 or region.width < 0 or region.height < 0:
        return False
    if region.x + region.width > pixel_width:
        return False
    if region.y + region.height > pixel_height:
        return False
    return True
