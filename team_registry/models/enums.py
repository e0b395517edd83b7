from enum import Enum


class RunMode(str, Enum):
    CLEAN = "clean"  # normalize + de-dupe the existing registry
    EXPAND = "expand"  # scrape rankings and merge new teams in
