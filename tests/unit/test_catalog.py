"""
Unit tests for the catalog domain logic.

These tests verify key derivation and the catalog service without
touching real object storage. The service is driven by a small fake
store that records what it was asked to sign.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.catalog.models import (
    ImageRole,
    OperationImages,
    SignedUrlWindow,
    classify_image_roles,
    device_id_from_key,
    operation_id_from_key,
)
from src.core.catalog.service import CatalogService


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeStore:
    """Lists keys in the given order and signs deterministic URLs."""

    def __init__(self, keys):
        self.keys = list(keys)
        self.prefixes: list[str] = []
        self.signed: list[tuple[str, datetime, datetime]] = []

    async def list_keys(self, prefix: str = ""):
        self.prefixes.append(prefix)
        for key in self.keys:
            if key.startswith(prefix):
                yield key

    async def generate_signed_url(self, key, valid_from, valid_until):
        self.signed.append((key, valid_from, valid_until))
        return f"https://store.test/{key}?sig=1"


class ExplodingStore:
    """Fails partway through a listing."""

    async def list_keys(self, prefix: str = ""):
        yield "d1/op1/before.png"
        raise RuntimeError("connection reset")

    async def generate_signed_url(self, key, valid_from, valid_until):
        return "unused"


def make_service(keys) -> tuple[CatalogService, FakeStore]:
    store = FakeStore(keys)
    return CatalogService(store, clock=lambda: FIXED_NOW), store


# ---------------------------------------------------------------------------
# Key Derivation Tests
# ---------------------------------------------------------------------------

class TestKeySegments:
    """Tests for device/operation extraction from object keys."""

    def test_device_is_first_segment(self):
        assert device_id_from_key("d1/op1/before.png") == "d1"

    def test_single_segment_key_is_its_own_device(self):
        assert device_id_from_key("loose-file.png") == "loose-file.png"

    def test_leading_separator_has_no_device(self):
        assert device_id_from_key("/op1/before.png") is None

    def test_operation_is_second_segment(self):
        assert operation_id_from_key("d1/op1/before.png") == "op1"

    def test_single_segment_key_has_no_operation(self):
        assert operation_id_from_key("d1") is None

    def test_empty_second_segment_has_no_operation(self):
        assert operation_id_from_key("d1//before.png") is None


class TestClassifyImageRoles:
    """Tests for before/after classification."""

    def test_before_matches_case_insensitively(self):
        assert classify_image_roles("d1/op1/IMG_BEFORE_01.JPG") == {ImageRole.BEFORE}

    def test_after_matches_anywhere_in_name(self):
        assert classify_image_roles("d1/op1/shot-after-cleaning.png") == {ImageRole.AFTER}

    def test_name_with_both_tokens_has_both_roles(self):
        roles = classify_image_roles("d1/op1/before_after.png")
        assert roles == {ImageRole.BEFORE, ImageRole.AFTER}

    def test_unrelated_name_has_no_role(self):
        assert classify_image_roles("d1/op1/overview.png") == frozenset()

    def test_only_file_name_is_inspected(self):
        """Directory segments that happen to contain a token don't count."""
        assert classify_image_roles("before-site/after-op/overview.png") == frozenset()


class TestSignedUrlWindow:
    """Tests for the signed URL validity window."""

    def test_window_starts_at_given_moment(self):
        window = SignedUrlWindow.starting_at(FIXED_NOW, timedelta(hours=48))
        assert window.valid_from == FIXED_NOW
        assert window.valid_until == FIXED_NOW + timedelta(hours=48)
        assert window.duration == timedelta(hours=48)

    def test_window_rejects_non_positive_length(self):
        with pytest.raises(ValueError, match="end after it starts"):
            SignedUrlWindow(valid_from=FIXED_NOW, valid_until=FIXED_NOW)


class TestOperationImages:

    def test_new_pair_is_empty(self):
        images = OperationImages()
        assert images.before is None
        assert images.after is None

    def test_assign_replaces_earlier_value(self):
        images = OperationImages()
        images.assign(ImageRole.AFTER, "first")
        images.assign(ImageRole.AFTER, "second")
        assert images.after == "second"
        assert images.before is None


# ---------------------------------------------------------------------------
# Catalog Service Tests
# ---------------------------------------------------------------------------

class TestListDevices:

    @pytest.mark.anyio
    async def test_distinct_first_segments(self, example_keys):
        service, store = make_service(example_keys)

        assert await service.list_devices() == ["d1"]
        assert store.prefixes == [""]

    @pytest.mark.anyio
    async def test_order_of_keys_does_not_change_the_set(self):
        keys = ["b/x/1.png", "a/y/2.png", "b/z/3.png", "c/w/4.png", "a/x/5.png"]
        forward, _ = make_service(keys)
        backward, _ = make_service(reversed(keys))

        first = await forward.list_devices()
        second = await backward.list_devices()

        assert sorted(first) == sorted(second) == ["a", "b", "c"]
        assert len(first) == len(set(first))

    @pytest.mark.anyio
    async def test_empty_container_has_no_devices(self):
        service, _ = make_service([])
        assert await service.list_devices() == []


class TestListOperations:

    @pytest.mark.anyio
    async def test_distinct_second_segments(self, example_keys):
        service, store = make_service(example_keys)

        operations = await service.list_operations("d1")

        assert sorted(operations) == ["op1", "op2"]
        assert store.prefixes == ["d1/"]

    @pytest.mark.anyio
    async def test_prefix_does_not_leak_into_similar_device_names(self):
        service, _ = make_service(["d1/op1/a.png", "d10/op9/b.png"])
        assert await service.list_operations("d1") == ["op1"]

    @pytest.mark.anyio
    async def test_keys_without_operation_contribute_nothing(self):
        service, _ = make_service(["d1/", "d1//x.png", "d1/op1/a.png"])
        assert await service.list_operations("d1") == ["op1"]

    @pytest.mark.anyio
    async def test_unknown_device_yields_empty_list(self, example_keys):
        service, _ = make_service(example_keys)
        assert await service.list_operations("nope") == []


class TestGetOperationImages:

    @pytest.mark.anyio
    async def test_both_roles_found(self, example_keys):
        service, store = make_service(example_keys)

        images = await service.get_operation_images("d1", "op1")

        assert images.before == "https://store.test/d1/op1/before.png?sig=1"
        assert images.after == "https://store.test/d1/op1/after.png?sig=1"
        assert store.prefixes == ["d1/op1/"]

    @pytest.mark.anyio
    async def test_missing_role_is_none(self, example_keys):
        service, _ = make_service(example_keys)

        images = await service.get_operation_images("d1", "op2")

        assert images.before == "https://store.test/d1/op2/before.jpg?sig=1"
        assert images.after is None

    @pytest.mark.anyio
    async def test_unknown_operation_is_empty_not_error(self, example_keys):
        service, store = make_service(example_keys)

        images = await service.get_operation_images("d1", "missing")

        assert images == OperationImages()
        assert store.signed == []

    @pytest.mark.anyio
    async def test_last_listed_match_wins(self):
        service, _ = make_service([
            "d1/op1/before_1.png",
            "d1/op1/before_2.png",
        ])

        images = await service.get_operation_images("d1", "op1")

        assert images.before == "https://store.test/d1/op1/before_2.png?sig=1"

    @pytest.mark.anyio
    async def test_only_classified_keys_are_signed(self):
        service, store = make_service([
            "d1/op1/before.png",
            "d1/op1/metadata.json",
        ])

        await service.get_operation_images("d1", "op1")

        assert [key for key, _, _ in store.signed] == ["d1/op1/before.png"]

    @pytest.mark.anyio
    async def test_signing_window_is_48_hours_from_now(self, example_keys):
        service, store = make_service(example_keys)

        await service.get_operation_images("d1", "op1")

        for _, valid_from, valid_until in store.signed:
            assert valid_from == FIXED_NOW
            assert valid_until - valid_from == timedelta(hours=48)

    @pytest.mark.anyio
    async def test_custom_ttl_is_honoured(self, example_keys):
        store = FakeStore(example_keys)
        service = CatalogService(store, signed_url_ttl=timedelta(hours=2), clock=lambda: FIXED_NOW)

        await service.get_operation_images("d1", "op2")

        assert store.signed[0][2] == FIXED_NOW + timedelta(hours=2)

    @pytest.mark.anyio
    async def test_store_failure_propagates(self):
        service = CatalogService(ExplodingStore(), clock=lambda: FIXED_NOW)

        with pytest.raises(RuntimeError, match="connection reset"):
            await service.get_operation_images("d1", "op1")


def test_service_rejects_non_positive_ttl():
    with pytest.raises(ValueError, match="positive"):
        CatalogService(FakeStore([]), signed_url_ttl=timedelta(0))
