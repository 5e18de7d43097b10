from .user_directory import HttpUserDirectory, StaticUserDirectory, UserDirectory

__all__ = ["HttpUserDirectory", "StaticUserDirectory", "UserDirectory"]
