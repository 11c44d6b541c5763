# PixelStag Filters Module
"""
Image operations: convolution, point operations, morphology and geometric
transforms.

Every operation is available as plain function (e.g. :func:`convolve_2d`) and
as JSON-serializable filter dataclass which can be composed into pipelines:

    pipeline = FilterPipeline.parse('gray|blur 5|threshold 100')
    result = pipeline.apply(image)
"""

from .base import (
    Filter,
    FilterContext,
    FILTER_REGISTRY,
    FILTER_ALIASES,
    register_filter,
    register_alias,
)

from .kernels import (
    Kernel,
    StructuringElementShape,
    structuring_element,
    sobel_x,
    sobel_y,
    laplacian_3x3,
    sharpen_3x3,
    box_filter,
    gaussian_filter,
)

from .convolution import BorderMode, convolve_2d

from .point_ops import (
    ThresholdType,
    invert,
    gamma,
    brightness,
    contrast,
    grayscale,
    lerp,
    threshold,
    histogram_equalize,
)

from .morphology import (
    dilate,
    erode,
    morph_open,
    morph_close,
    morph_gradient,
    top_hat,
    black_hat,
    median_blur,
    Erode,
    Dilate,
    MorphOpen,
    MorphClose,
    MorphGradient,
    TopHat,
    BlackHat,
)

from .geometric import (
    affine_transform,
    rotation_matrix,
    rotate,
    scale,
    translate,
    AffineTransform,
    Rotate,
    Scale,
    Translate,
)

from .blur import (
    Convolve,
    GaussianBlur,
    BoxBlur,
    Sharpen,
    EdgeDetect,
    MedianBlur,
)

from .color import (
    Invert,
    Gamma,
    Brightness,
    Contrast,
    Grayscale,
    Threshold,
    HistogramEqualize,
    Lerp,
    ConvertFormat,
)

from .pipeline import FilterPipeline

# Register aliases for compact DSL
register_alias('blur', GaussianBlur)
register_alias('gaussian', GaussianBlur)
register_alias('box', BoxBlur)
register_alias('median', MedianBlur)
register_alias('gray', Grayscale)
register_alias('grey', Grayscale)
register_alias('equalize', HistogramEqualize)
register_alias('convert', ConvertFormat)
register_alias('open', MorphOpen)
register_alias('close', MorphClose)
register_alias('gradient', MorphGradient)
register_alias('shift', Translate)

# Edge shortcuts (parameterized aliases)
register_alias('sobelx', EdgeDetect, kernel='sobel_x')
register_alias('sobely', EdgeDetect, kernel='sobel_y')
register_alias('laplacian', EdgeDetect, kernel='laplacian')

# Threshold shortcuts
register_alias('binarize', Threshold, kind='binary')
register_alias('truncate', Threshold, kind='truncate')
register_alias('tozero', Threshold, kind='to_zero')

# Rotation shortcuts
register_alias('rot90', Rotate, angle=90)
register_alias('rot180', Rotate, angle=180)
register_alias('rot270', Rotate, angle=270)

__all__ = [
    # Base
    'Filter',
    'FilterContext',
    'FilterPipeline',
    'FILTER_REGISTRY',
    'FILTER_ALIASES',
    'register_filter',
    'register_alias',
    # Kernels
    'Kernel',
    'StructuringElementShape',
    'structuring_element',
    'sobel_x',
    'sobel_y',
    'laplacian_3x3',
    'sharpen_3x3',
    'box_filter',
    'gaussian_filter',
    # Convolution
    'BorderMode',
    'convolve_2d',
    # Point operations
    'ThresholdType',
    'invert',
    'gamma',
    'brightness',
    'contrast',
    'grayscale',
    'lerp',
    'threshold',
    'histogram_equalize',
    # Morphology
    'dilate',
    'erode',
    'morph_open',
    'morph_close',
    'morph_gradient',
    'top_hat',
    'black_hat',
    'median_blur',
    # Geometric
    'affine_transform',
    'rotation_matrix',
    'rotate',
    'scale',
    'translate',
    # Filters
    'Convolve',
    'GaussianBlur',
    'BoxBlur',
    'Sharpen',
    'EdgeDetect',
    'MedianBlur',
    'Invert',
    'Gamma',
    'Brightness',
    'Contrast',
    'Grayscale',
    'Threshold',
    'HistogramEqualize',
    'Lerp',
    'ConvertFormat',
    'Erode',
    'Dilate',
    'MorphOpen',
    'MorphClose',
    'MorphGradient',
    'TopHat',
    'BlackHat',
    'AffineTransform',
    'Rotate',
    'Scale',
    'Translate',
]
