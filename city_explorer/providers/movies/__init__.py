from city_explorer.providers.movies.tmdb_provider import TMDBMovieProvider

__all__ = ["TMDBMovieProvider"]
