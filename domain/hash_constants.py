"""Hash constants for the tool package store."""

HASH_ALGORITHM = "sha512"
BLOCK_SIZE = 8192  # 8KB block size for streamed copies
HASH_FILE_EXTENSION = ".nupkg.sha512"
PACKAGE_FILE_EXTENSION = ".nupkg"
