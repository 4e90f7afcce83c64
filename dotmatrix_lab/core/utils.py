from pathlib import Path
from typing import Union

def get_output_filename(input_path: Union[str, Path], suffix: str = '-dotmatrix') -> Path:
    """
    Generate a PNG output filename with a suffix, avoiding overwrites.

    Args:
        input_path: Path to input image
        suffix: Text appended to the input stem

    Returns:
        Path object for output file
    """
    path = Path(input_path)
    stem = path.stem
    directory = path.parent

    # Start with base name
    output_path = directory / f"{stem}{suffix}.png"

    # If file exists, append number
    counter = 1
    while output_path.exists():
        output_path = directory / f"{stem}{suffix}-{counter}.png"
        counter += 1

    return output_path
