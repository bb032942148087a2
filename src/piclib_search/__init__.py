"""
PicLib Search - image search over racing LibreY mirrors.

Answers a text query by picking the fastest healthy LibreY mirror,
fanning out to fetch candidate images within a time budget, and
returning the ones whose aspect ratio is usable as inline results.

Usage:
    from piclib_search.config import Settings
    from piclib_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(Settings.from_env().to_container_config())
    outcome = await container.image_search_service().search_images("cats")
"""

__version__ = "0.2.0"
