import os


def create_dirs(path: str) -> None:
    """
    Create all parent directories for a given path.

    Args:
        path: File path for which to create parent directories
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
