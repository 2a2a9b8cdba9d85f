"""Test the shared state store."""

import pytest

from smarthome_dashboard.api.base import StateError
from smarthome_dashboard.api.state import (
    DEVICE_IDS,
    DeviceState,
    DeviceStateStore,
    DeviceStatus,
    GasReading,
    SensorKind,
)
from tests.conftest import FIXED_TIME


class TestDeviceStateStore:
    """Test DeviceStateStore."""

    def test_every_device_has_default_state(self, store):
        snapshot = store.snapshot()
        assert set(snapshot.devices) == set(DEVICE_IDS)
        for state in snapshot.devices.values():
            assert state.status == DeviceStatus.UNKNOWN
            assert state.online is False
        assert snapshot.connected is False

    def test_unknown_device_reads_default(self, store):
        state = store.get("garage_door")
        assert state == DeviceState()
        assert store.revision("garage_door") == 0

    def test_write_unknown_device_raises(self, store):
        with pytest.raises(StateError):
            store.write("garage_door", DeviceState(status=DeviceStatus.ON))

    def test_write_notifies_with_snapshot(self, store, snapshots):
        store.write("fan", DeviceState(status=DeviceStatus.ON, online=True, last_updated=FIXED_TIME))
        assert len(snapshots) == 1
        assert snapshots[0].devices["fan"].status == DeviceStatus.ON

    def test_revisions_increase_across_devices(self, store):
        first = store.write("fan", DeviceState(status=DeviceStatus.ON))
        second = store.write("pump", DeviceState(status=DeviceStatus.ON))
        third = store.write("fan", DeviceState(status=DeviceStatus.OFF))
        assert first < second < third
        assert store.revision("fan") == third
        assert store.revision("pump") == second

    def test_same_timestamp_writes_get_distinct_revisions(self, store):
        state = DeviceState(status=DeviceStatus.ON, last_updated=FIXED_TIME)
        assert store.write("fan", state) != store.write("fan", state)

    def test_restore_reuses_given_revision(self, store, snapshots):
        earlier = store.write("fan", DeviceState(status=DeviceStatus.OFF))
        store.write("fan", DeviceState(status=DeviceStatus.ON))

        store.restore("fan", DeviceState(status=DeviceStatus.OFF), earlier)

        assert store.get("fan").status == DeviceStatus.OFF
        assert store.revision("fan") == earlier
        assert len(snapshots) == 3
        # The sequence keeps counting from where it was
        assert store.write("pump", DeviceState(status=DeviceStatus.ON)) == earlier + 2

    def test_restore_unknown_device_raises(self, store):
        with pytest.raises(StateError):
            store.restore("garage_door", DeviceState(), 0)

    def test_set_connected_flips_liveness_only(self, store, snapshots):
        store.write("neo_bedroom", DeviceState(status=DeviceStatus.ON, online=True, color="#FF0000"))
        revision = store.revision("neo_bedroom")

        store.set_connected(False)

        neo = store.get("neo_bedroom")
        assert neo.online is False
        assert neo.status == DeviceStatus.ON
        assert neo.color == "#FF0000"
        assert store.revision("neo_bedroom") == revision
        assert snapshots[-1].connected is False

    def test_set_connected_marks_all_online(self, store):
        store.set_connected(True)
        assert store.connected is True
        assert all(state.online for state in store.snapshot().devices.values())

    def test_update_sensor(self, store, snapshots):
        assert store.sensors.gas is None
        store.update_sensor(SensorKind.GAS, GasReading(level=120, threshold=300))
        assert store.sensors.gas.level == 120
        assert snapshots[-1].sensors.gas.threshold == 300

    def test_transaction_notifies_once(self, store, snapshots):
        with store.transaction():
            store.write("alarm", DeviceState(status=DeviceStatus.ON))
            store.write("warning_light", DeviceState(status=DeviceStatus.ON))
            assert snapshots == []
        assert len(snapshots) == 1
        assert snapshots[0].devices["alarm"].status == DeviceStatus.ON
        assert snapshots[0].devices["warning_light"].status == DeviceStatus.ON

    def test_nested_transaction_notifies_on_outer_exit(self, store, snapshots):
        with store.transaction():
            with store.transaction():
                store.write("fan", DeviceState(status=DeviceStatus.ON))
            assert snapshots == []
        assert len(snapshots) == 1

    def test_empty_transaction_still_notifies(self, store, snapshots):
        with store.transaction():
            pass
        assert len(snapshots) == 1

    def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        unsubscribe()
        store.set_connected(True)
        assert received == []

    def test_snapshot_is_a_copy(self, store):
        snapshot = store.snapshot()
        store.write("fan", DeviceState(status=DeviceStatus.ON))
        assert snapshot.devices["fan"].status == DeviceStatus.UNKNOWN

    def test_custom_device_ids(self):
        store = DeviceStateStore(device_ids=["heater"])
        assert store.device_ids == ("heater",)
        assert store.is_known("heater")
        assert not store.is_known("fan")
