"""Tests for the in-memory document registry."""

import logging
import threading

import pytest

from flowtoml.core.models import GetValueError, SetValueError, ValueType
from flowtoml.registry.documents import DocumentRegistry


class TestHandles:
    """Tests for handle allocation and lifetime."""

    def test_handles_start_at_zero(self, registry: DocumentRegistry) -> None:
        """The first handle is 0 and the next is 1."""
        assert registry.new_document() == 0
        assert registry.new_document() == 1

    def test_handles_never_reused(self, registry: DocumentRegistry) -> None:
        """Handles keep increasing even after close."""
        seen = []
        for _ in range(5):
            handle = registry.new_document()
            seen.append(handle)
            registry.close(handle)
        seen.append(registry.new_document())

        assert seen == sorted(seen)
        assert len(set(seen)) == len(seen)

    def test_new_document_is_registered_and_empty(self, registry: DocumentRegistry) -> None:
        """A new handle maps to an empty table."""
        handle = registry.new_document()
        assert registry.is_registered(handle)
        assert handle in registry
        assert registry.snapshot(handle) == {}

    def test_close(self, registry: DocumentRegistry) -> None:
        """close() reports whether the handle was open."""
        handle = registry.new_document()
        assert registry.close(handle) is True
        assert registry.close(handle) is False
        assert not registry.is_registered(handle)
        assert registry.snapshot(handle) is None

    def test_handles_listing(self, registry: DocumentRegistry) -> None:
        """handles() lists only open documents."""
        first = registry.new_document()
        second = registry.new_document()
        registry.close(first)
        assert registry.handles() == [second]
        assert len(registry) == 1

    def test_concurrent_allocation_is_unique(self, registry: DocumentRegistry) -> None:
        """Handles issued from many threads never collide."""
        results: list[int] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(100):
                handle = registry.new_document()
                with lock:
                    results.append(handle)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 800
        assert set(results) == set(range(800))


class TestSetValue:
    """Tests for DocumentRegistry.set_value."""

    def test_set_top_level(self, registry: DocumentRegistry) -> None:
        """Values without a section go to the top level."""
        handle = registry.new_document()
        result = registry.set_value(handle, "name", "demo")
        assert result.ok
        assert registry.snapshot(handle) == {"name": "demo"}

    def test_set_in_section(self, registry: DocumentRegistry) -> None:
        """Values with a section go into that table."""
        handle = registry.new_document()
        registry.set_value(handle, "port", "8080", "network")
        registry.set_value(handle, "host", "localhost", "network")
        assert registry.snapshot(handle) == {
            "network": {"port": "8080", "host": "localhost"}
        }

    def test_empty_key(self, registry: DocumentRegistry) -> None:
        """An empty key always fails, even for unknown handles."""
        handle = registry.new_document()
        assert registry.set_value(handle, "", 1).error is SetValueError.KEY_EMPTY
        assert registry.set_value(999, "", 1).error is SetValueError.KEY_EMPTY
        assert registry.snapshot(handle) == {}

    def test_unknown_handle(self, registry: DocumentRegistry) -> None:
        """Unknown handles report DOCUMENT_NOT_FOUND."""
        result = registry.set_value(42, "key", "value")
        assert result.error is SetValueError.DOCUMENT_NOT_FOUND

    def test_closed_handle(self, registry: DocumentRegistry) -> None:
        """Closed handles report DOCUMENT_NOT_FOUND."""
        handle = registry.new_document()
        registry.close(handle)
        result = registry.set_value(handle, "key", "value")
        assert result.error is SetValueError.DOCUMENT_NOT_FOUND

    def test_overwrite_changes_type(self, registry: DocumentRegistry) -> None:
        """Setting an existing key replaces value and type."""
        handle = registry.new_document()
        registry.set_value(handle, "port", "8080")
        registry.set_value(handle, "port", 8080)
        assert registry.get_value(handle, "port", ValueType.INTEGER).value == 8080

    def test_section_replaces_scalar(self, registry: DocumentRegistry) -> None:
        """A scalar stored under the section name becomes a table."""
        handle = registry.new_document()
        registry.set_value(handle, "network", "off")
        registry.set_value(handle, "port", 1, "network")
        assert registry.snapshot(handle) == {"network": {"port": 1}}

    def test_stored_containers_are_copies(self, registry: DocumentRegistry) -> None:
        """Mutating the caller's array or table does not change the document."""
        handle = registry.new_document()
        ports = [1, 2]
        limits = {"max": 10}
        registry.set_value(handle, "ports", ports)
        registry.set_value(handle, "limits", limits, "network")

        ports.append(3)
        limits["max"] = 99

        assert registry.get_value(handle, "ports").value == [1, 2]
        assert registry.get_value(handle, "limits", section="network").value == {"max": 10}

    @pytest.mark.parametrize("value", [None, object(), 2**63, [1, None], {"a": None}])
    def test_unstorable_value_warns(
        self, registry: DocumentRegistry, caplog: pytest.LogCaptureFixture, value
    ) -> None:
        """Values TOML cannot hold are stored with a warning."""
        handle = registry.new_document()
        with caplog.at_level(logging.WARNING, logger="flowtoml.registry.documents"):
            result = registry.set_value(handle, "bad", value)

        assert result.ok
        assert "cannot be saved as TOML" in caplog.text

    def test_storable_value_does_not_warn(
        self, registry: DocumentRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Plain TOML values are stored silently."""
        handle = registry.new_document()
        with caplog.at_level(logging.WARNING, logger="flowtoml.registry.documents"):
            registry.set_value(handle, "ports", [80, 443], "network")

        assert caplog.text == ""


class TestGetValue:
    """Tests for DocumentRegistry.get_value."""

    def test_round_trip_top_level(self, registry: DocumentRegistry) -> None:
        """get_value returns what set_value stored."""
        handle = registry.new_document()
        registry.set_value(handle, "volume", 7)
        result = registry.get_value(handle, "volume")
        assert result.ok
        assert result.value == 7

    def test_round_trip_section(self, registry: DocumentRegistry) -> None:
        """Section addressing round-trips."""
        handle = registry.new_document()
        registry.set_value(handle, "port", "8080", "network")
        result = registry.get_value(handle, "port", ValueType.STRING, "network")
        assert result.value == "8080"

    def test_missing_key(self, registry: DocumentRegistry) -> None:
        """Missing keys report VALUE_NOT_FOUND."""
        handle = registry.new_document()
        result = registry.get_value(handle, "absent")
        assert result.error is GetValueError.VALUE_NOT_FOUND

    def test_missing_section(self, registry: DocumentRegistry) -> None:
        """Missing sections report VALUE_NOT_FOUND."""
        handle = registry.new_document()
        registry.set_value(handle, "port", "8080")
        result = registry.get_value(handle, "port", section="network")
        assert result.error is GetValueError.VALUE_NOT_FOUND

    def test_section_is_not_table(self, registry: DocumentRegistry) -> None:
        """A scalar under the section name is not a section."""
        handle = registry.new_document()
        registry.set_value(handle, "network", "off")
        result = registry.get_value(handle, "port", section="network")
        assert result.error is GetValueError.VALUE_NOT_FOUND

    def test_type_mismatch(self, registry: DocumentRegistry) -> None:
        """A stored string is not an integer."""
        handle = registry.new_document()
        registry.set_value(handle, "port", "8080")
        result = registry.get_value(handle, "port", ValueType.INTEGER)
        assert result.error is GetValueError.VALUE_TYPE_MISMATCH

    def test_bool_does_not_read_as_integer(self, registry: DocumentRegistry) -> None:
        """Booleans are not integers for type-matched reads."""
        handle = registry.new_document()
        registry.set_value(handle, "enabled", True)
        result = registry.get_value(handle, "enabled", ValueType.INTEGER)
        assert result.error is GetValueError.VALUE_TYPE_MISMATCH

    def test_empty_key(self, registry: DocumentRegistry) -> None:
        """An empty key reports KEY_EMPTY."""
        handle = registry.new_document()
        assert registry.get_value(handle, "").error is GetValueError.KEY_EMPTY

    def test_closed_handle(self, registry: DocumentRegistry) -> None:
        """Closed handles report DOCUMENT_NOT_FOUND."""
        handle = registry.new_document()
        registry.set_value(handle, "key", "value")
        registry.close(handle)
        result = registry.get_value(handle, "key")
        assert result.error is GetValueError.DOCUMENT_NOT_FOUND

    def test_returned_containers_are_copies(self, registry: DocumentRegistry) -> None:
        """Mutating a returned array does not change the document."""
        handle = registry.new_document()
        registry.set_value(handle, "ports", [80, 443])
        ports = registry.get_value(handle, "ports", ValueType.ARRAY).value
        ports.append(8080)
        assert registry.get_value(handle, "ports").value == [80, 443]


class TestAccess:
    """Tests for locked document access."""

    def test_access_yields_live_document(self, registry: DocumentRegistry) -> None:
        """Changes made inside access() are kept."""
        handle = registry.new_document()
        with registry.access(handle) as data:
            data["nested"] = {"deep": {"value": 1}}
        assert registry.get_value(handle, "nested").value == {"deep": {"value": 1}}

    def test_access_unknown_handle(self, registry: DocumentRegistry) -> None:
        """Unknown handles yield None."""
        with registry.access(123) as data:
            assert data is None

    def test_access_is_reentrant(self, registry: DocumentRegistry) -> None:
        """Registry calls can be made while holding access()."""
        handle = registry.new_document()
        with registry.access(handle):
            other = registry.new_document()
            assert registry.close(handle)
        assert registry.handles() == [other]

    def test_snapshot_is_a_copy(self, registry: DocumentRegistry) -> None:
        """Changing a snapshot leaves the open document untouched."""
        handle = registry.new_document()
        registry.set_value(handle, "port", 1, "network")

        snapshot = registry.snapshot(handle)
        snapshot["network"]["port"] = 2
        snapshot["extra"] = True

        assert registry.snapshot(handle) == {"network": {"port": 1}}
