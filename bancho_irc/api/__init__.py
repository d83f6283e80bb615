from .osu import OsuAPI, UserLookup

__all__ = ["OsuAPI", "UserLookup"]
