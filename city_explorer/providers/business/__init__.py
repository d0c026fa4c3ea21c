from city_explorer.providers.business.yelp_provider import YelpBusinessProvider

__all__ = ["YelpBusinessProvider"]
