from lensdist.api import from_opencv_coeffs, load_distortion, save_distortion, to_opencv_coeffs
from lensdist.core.distortion import Distortion, ParameterIndexError
from lensdist.core.equidistant import EquidistantDistortion
from lensdist.core.factory import clean_all_properties, create_distortion
from lensdist.core.radial import RadialDistortion, RadialTangentialDistortion
from lensdist.core.rational import RationalTangentialDistortion, RationalTangentialThinPrismDistortion
from lensdist.properties import Properties, PropertiesError

__all__ = [
    "Distortion",
    "RadialDistortion",
    "RadialTangentialDistortion",
    "RationalTangentialDistortion",
    "RationalTangentialThinPrismDistortion",
    "EquidistantDistortion",
    "ParameterIndexError",
    "create_distortion",
    "clean_all_properties",
    "Properties",
    "PropertiesError",
    "load_distortion",
    "save_distortion",
    "to_opencv_coeffs",
    "from_opencv_coeffs",
]
