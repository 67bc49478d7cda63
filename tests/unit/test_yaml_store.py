"""
Tests for YamlUnitSource.
"""
import pytest
import yaml

from solaranomaly.adapters.config.yaml_store import YamlUnitSource


@pytest.fixture
def units_file(tmp_path):
    path = tmp_path / "units.yaml"
    path.write_text(yaml.safe_dump({
        "units": [
            {"id": "unit-001", "serial_number": "SU-0001", "panel_capacity": 5.0, "latitude": 6.93, "longitude": 79.85},
            {"id": "unit-002", "panel_capacity": 3.0, "operational_status": "INACTIVE"},
            {"id": "broken", "panel_capacity": 0},
        ]
    }))
    return path


@pytest.mark.asyncio
async def test_loads_active_units(units_file):
    source = YamlUnitSource(units_file)

    units = await source.fetch_active_units()

    assert [u.id for u in units] == ["unit-001"]
    assert units[0].latitude == 6.93


@pytest.mark.asyncio
async def test_get_unit_includes_inactive(units_file):
    source = YamlUnitSource(units_file)

    assert (await source.get_unit("unit-002")).panel_capacity == 3.0
    assert await source.get_unit("broken") is None


@pytest.mark.asyncio
async def test_missing_file_is_empty(tmp_path):
    source = YamlUnitSource(tmp_path / "nope.yaml")

    assert await source.fetch_active_units() == []
