"""pylandcore settings."""

from os import environ

try:
    import dotenv

    # load environment variables from a '.env' file of a parent directory
    dotenv.load_dotenv(dotenv.find_dotenv())
except ImportError:
    pass

# BASIC DEFINITIONS
# names of the metric records, following the FRAGSTATS/landscapemetrics abbreviations
# (lowercase)
metric_abbrev_dict = {
    # patch-level metrics
    "area": "area",
    "perimeter": "perim",
    "perimeter_area_ratio": "para",
    "shape_index": "shape",
    "fractal_dimension": "frac",
    "radius_of_gyration": "gyrate",
    "core_area": "core",
    "number_of_core_areas": "ncore",
    "core_area_index": "cai",
    "contiguity_index": "contig",
    "related_circumscribing_circle": "circle",
    "euclidean_nearest_neighbor": "enn",
    # class-level metrics (can also be landscape-level)
    # ACHTUNG: the 'total_area' metric is 'ca' at the class level and 'ta' at the
    # landscape level, see `CLASS_ABBREV_OVERRIDE_DICT` below
    "total_area": "ta",
    "number_of_patches": "np",
    "total_edge": "te",
    "total_core_area": "tca",
    "number_of_disjunct_core_areas": "ndca",
    "effective_mesh_size": "mesh",
    "splitting_index": "split",
    "patch_cohesion_index": "cohesion",
    "perimeter_area_fractal_dimension": "pafrac",
    # landscape-level metrics
    "entropy": "ent",
    "joint_entropy": "joinent",
    "conditional_entropy": "condent",
    "mutual_information": "mutinf",
    "relative_mutual_information": "relmutinf",
    "contagion": "contag",
    "percentage_of_like_adjacencies": "pladj",
    "patch_richness": "pr",
    "relative_patch_richness": "rpr",
    "shannon_diversity_index": "shdi",
    "shannon_evenness_index": "shei",
}
CLASS_ABBREV_OVERRIDE_DICT = {"total_area": "ca"}

# OTHER
DEFAULT_NODATA = int(environ.get("PYLANDCORE_NODATA", 0))
DEFAULT_NEIGHBORHOOD_RULE = "8"
DEFAULT_EDGE_DEPTH = 1
# whether the outer boundary of the grid counts as edge when classifying edge/core cells
# and when computing patch perimeters
DEFAULT_COUNT_BOUNDARY = True
# whether the outer boundary of the grid counts towards the total edge length
DEFAULT_TE_COUNT_BOUNDARY = False
# adjacency settings for the entropy-based (landscape complexity) metrics
DEFAULT_ADJACENCY_NEIGHBORHOOD = "4"
DEFAULT_ORDERED = True
DEFAULT_LOG_BASE = 2
# minimum number of patches to fit the perimeter-area fractal dimension regression
PAFRAC_MIN_PATCHES = 10
# sometimes pixel resolutions in GeoTIFF files are floats therefore comparisons (e.g.,
# `cell_width == cell_height`) should allow for some tolerance
CELLLENGTH_RTOL = 0.001
COMPUTE_PROGRESS_BAR = environ.get("PYLANDCORE_PROGRESS_BAR", "1") not in ("0", "")
