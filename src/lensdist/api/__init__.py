from lensdist.api.model_io import (
    distortion_from_dict,
    distortion_to_dict,
    from_opencv_coeffs,
    load_distortion,
    save_distortion,
    to_opencv_coeffs,
)

__all__ = [
    "distortion_from_dict",
    "distortion_to_dict",
    "from_opencv_coeffs",
    "load_distortion",
    "save_distortion",
    "to_opencv_coeffs",
]
