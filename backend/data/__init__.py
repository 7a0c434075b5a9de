"""Sample data and fixtures."""

from data.sample_facility import SAMPLE_FACILITY_ID, SAMPLE_FACILITY_NAME, sample_room_configs

__all__ = ["SAMPLE_FACILITY_ID", "SAMPLE_FACILITY_NAME", "sample_room_configs"]
