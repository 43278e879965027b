"""Tests for container wiring."""

import asyncio

from meal_lens.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.analysis_service.dedupe_in_flight is True
    assert container.analysis_service.timeout_seconds == 30.0
    assert "image/heic" in container.upload_grant_service.allowed_content_types
    assert container.upload_grant_service.max_bytes == 8 * 1024 * 1024
    asyncio.run(container.close_resources())
