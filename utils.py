ABSOLUTE_ZERO_CELSIUS = 273.15
FAHRENHEIT_FORMAT = "{:.1f}°F"


def kelvin_to_fahrenheit(temperature_kelvin: float) -> float:
    """Converts a temperature from Kelvin to degrees Fahrenheit.

        Args:
            temperature_kelvin: The temperature in Kelvin, as reported by the provider.

        Returns:
            The temperature in degrees Fahrenheit.

        Example:
            >>> kelvin_to_fahrenheit(273.15)
            32.0
    """
    return (temperature_kelvin - ABSOLUTE_ZERO_CELSIUS) * 9 / 5 + 32


def format_fahrenheit(temperature_kelvin: float) -> str:
    """
        Formats a Kelvin temperature as display text in Fahrenheit, with one decimal place.

        Example:
            >>> format_fahrenheit(273.15)
            '32.0°F'
            >>> format_fahrenheit(0)
            '-459.7°F'
    """
    return FAHRENHEIT_FORMAT.format(kelvin_to_fahrenheit(temperature_kelvin))
