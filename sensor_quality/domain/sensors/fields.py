from __future__ import annotations

from enum import Enum


class SensorKind(str, Enum):
    """Environmental quantities a device can report."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PH = "ph"
    EC = "ec"
    CO2 = "co2"
    VPD = "vpd"
    LIGHT_INTENSITY = "light_intensity"
    SOIL_MOISTURE = "soil_moisture"
    WATER_LEVEL = "water_level"
    AIR_PRESSURE = "air_pressure"
    WIND_SPEED = "wind_speed"

    def __str__(self) -> str:
        return self.value

    @property
    def unit(self) -> str:
        return UNIT_MAP[self]


UNIT_MAP: dict[SensorKind, str] = {
    SensorKind.TEMPERATURE: "°C",
    SensorKind.HUMIDITY: "%",
    SensorKind.PH: "pH",
    SensorKind.EC: "mS/cm",
    SensorKind.CO2: "ppm",
    SensorKind.VPD: "kPa",
    SensorKind.LIGHT_INTENSITY: "μmol/m²/s",
    SensorKind.SOIL_MOISTURE: "%",
    SensorKind.WATER_LEVEL: "%",
    SensorKind.AIR_PRESSURE: "hPa",
    SensorKind.WIND_SPEED: "m/s",
}


# Aliases mapping: alias -> SensorKind
# Maps the field names devices actually send to the closed set of kinds.
FIELD_ALIASES: dict[str, SensorKind] = {
    # Temperature
    "temp": SensorKind.TEMPERATURE,
    "temp_c": SensorKind.TEMPERATURE,
    "air_temperature": SensorKind.TEMPERATURE,
    # Humidity
    "rh": SensorKind.HUMIDITY,
    "relative_humidity": SensorKind.HUMIDITY,
    "humidity_percent": SensorKind.HUMIDITY,
    # pH / EC
    "ph_level": SensorKind.PH,
    "ec_ms_cm": SensorKind.EC,
    "conductivity": SensorKind.EC,
    # CO2
    "co2_ppm": SensorKind.CO2,
    "eco2": SensorKind.CO2,
    # VPD
    "vpd_kpa": SensorKind.VPD,
    # Light
    "light": SensorKind.LIGHT_INTENSITY,
    "lux": SensorKind.LIGHT_INTENSITY,
    "lightintensity": SensorKind.LIGHT_INTENSITY,
    "ppfd": SensorKind.LIGHT_INTENSITY,
    "par": SensorKind.LIGHT_INTENSITY,
    # Soil moisture
    "moisture": SensorKind.SOIL_MOISTURE,
    "moisture_level": SensorKind.SOIL_MOISTURE,
    "soilmoisture": SensorKind.SOIL_MOISTURE,
    # Water level
    "waterlevel": SensorKind.WATER_LEVEL,
    "reservoir_level": SensorKind.WATER_LEVEL,
    # Pressure
    "pressure": SensorKind.AIR_PRESSURE,
    "pressure_hpa": SensorKind.AIR_PRESSURE,
    "airpressure": SensorKind.AIR_PRESSURE,
    # Wind
    "wind": SensorKind.WIND_SPEED,
    "windspeed": SensorKind.WIND_SPEED,
}


def get_sensor_kind(field_name: str) -> SensorKind | None:
    """
    Resolve a field name or alias to a SensorKind.

    Matching is case-insensitive and ignores surrounding whitespace.
    Returns None for fields that are not sensor measurements.
    """
    key = str(field_name).strip().lower()
    try:
        return SensorKind(key)
    except ValueError:
        return FIELD_ALIASES.get(key)
