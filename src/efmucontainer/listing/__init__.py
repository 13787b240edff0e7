"""File listings of model representation sub-manifests."""

from efmucontainer.listing.entry import FileEntryRole, FileListingEntry
from efmucontainer.listing.listing import FileListing, parse_entry, read_file_listing, verify_entry

__all__ = [
    "FileEntryRole",
    "FileListing",
    "FileListingEntry",
    "parse_entry",
    "read_file_listing",
    "verify_entry",
]
