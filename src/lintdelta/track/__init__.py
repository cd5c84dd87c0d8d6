from lintdelta.track.branch import BranchResolver, closest_remote_branch
from lintdelta.track.region import RegionTracker

__all__ = [
    "BranchResolver",
    "RegionTracker",
    "closest_remote_branch",
]
