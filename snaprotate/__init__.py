"""
snaprotate - rotating btrfs subvolume snapshots

Takes snapshots on demand and thins out old ones with a tiered retention
policy, so snapshot density decreases smoothly with age.
"""

try:
    from importlib.metadata import version

    __version__ = version("snaprotate")
except Exception:
    __version__ = "0.0.0"  # Fallback for development
