from city_explorer.providers.weather.darksky_provider import DarkSkyWeatherProvider

__all__ = ["DarkSkyWeatherProvider"]
