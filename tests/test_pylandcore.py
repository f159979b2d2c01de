"""pylandcore tests."""

import tempfile
import unittest
import warnings
from os import path

import numpy as np
import pandas as pd
import rasterio as rio
from rasterio import transform
from scipy.spatial import distance

import pylandcore as plc
from pylandcore import proximity

# small grid with three classes and two missing cells (nodata 0)
ARR = np.array(
    [
        [1, 1, 2, 2, 3, 3],
        [1, 1, 2, 2, 3, 3],
        [1, 2, 2, 0, 3, 1],
        [3, 3, 1, 1, 1, 1],
        [3, 3, 1, 2, 2, 1],
        [0, 3, 1, 2, 2, 1],
    ]
)
# two 5x5 squares of class 1 joined by a single-cell bridge, class 2 elsewhere
DUMBBELL_ARR = np.full((5, 11), 2)
DUMBBELL_ARR[:, :5] = 1
DUMBBELL_ARR[:, 6:] = 1
DUMBBELL_ARR[2, 5] = 1
CHECKERBOARD_ARR = np.indices((4, 4)).sum(axis=0) % 2 + 1


def random_arr(seed=0, shape=(15, 15), num_classes=3):
    return np.random.default_rng(seed).integers(0, num_classes + 1, size=shape)


class TestImports(unittest.TestCase):
    def test_base_imports(self):
        pass


class TestGrid(unittest.TestCase):
    def test_io(self):
        # test that if we provide a ndarray, we also need to provide the resolution
        with self.assertRaises(plc.InvalidResolutionError) as cm:
            plc.Grid(ARR)
        self.assertIn("must be provided", str(cm.exception))

        grid = plc.Grid(ARR, res=(2, 3))
        self.assertEqual(grid.res, (2.0, 3.0))
        self.assertEqual(grid.cell_area, 6)
        self.assertFalse(grid.is_isotropic)
        self.assertEqual(grid.nodata, 0)
        self.assertTrue(np.array_equal(grid.classes, [1, 2, 3]))
        self.assertEqual(grid.landscape_area, 34 * 6)
        # test that the transform is None if we instantiate a grid from an ndarray
        self.assertIsNone(grid.transform)

        # test that the grid is read from a raster file, including its resolution,
        # nodata value and transform
        with tempfile.TemporaryDirectory() as tmp_dir:
            grid_fp = path.join(tmp_dir, "grid.tif")
            with rio.open(
                grid_fp,
                "w",
                driver="GTiff",
                height=ARR.shape[0],
                width=ARR.shape[1],
                count=1,
                dtype=np.uint8,
                nodata=0,
                transform=transform.from_origin(0, 60, 10, 10),
            ) as dst:
                dst.write(ARR.astype(np.uint8), 1)
            grid = plc.Grid(grid_fp)
        self.assertEqual(grid.res, (10.0, 10.0))
        self.assertTrue(grid.is_isotropic)
        self.assertEqual(grid.nodata, 0)
        self.assertIsNotNone(grid.transform)
        self.assertTrue(np.array_equal(grid.arr, ARR))

    def test_missing_data(self):
        # `NaN` cells of float arrays are missing data
        arr = ARR.astype(float)
        arr[arr == 0] = np.nan
        grid = plc.Grid(arr, res=(1, 1))
        self.assertTrue(np.array_equal(grid.arr, ARR))
        self.assertEqual(grid.arr.dtype, np.int64)

        # custom nodata value
        grid = plc.Grid(ARR, res=(1, 1), nodata=3)
        self.assertTrue(np.array_equal(grid.classes, [0, 1, 2]))
        self.assertFalse(grid.data_mask[0, 4])

        # not two-dimensional
        with self.assertRaises(ValueError):
            plc.Grid(np.ones((2, 2, 2)), res=(1, 1))

    def test_invalid_resolution(self):
        for res in [(0, 1), (1, -1), (np.nan, 1), (np.inf, 1), (1,), "ab", 1]:
            with self.assertRaises(plc.InvalidResolutionError):
                plc.Grid(ARR, res=res)
        # the error is also a `ValueError`
        with self.assertRaises(ValueError):
            plc.validate_res((-1, -1))
        self.assertEqual(plc.validate_res([2, 3]), (2.0, 3.0))

        # primitives that take a resolution also validate it
        label_arr = plc.label(plc.Grid(ARR, res=(1, 1)))[1]
        for func in [plc.area, plc.perimeter, plc.nearest_neighbor]:
            with self.assertRaises(plc.InvalidResolutionError):
                func(label_arr, (0, 0))


class TestLabeling(unittest.TestCase):
    def setUp(self):
        self.grid = plc.Grid(random_arr(), res=(1, 1))

    def test_connectivity(self):
        # test that providing a value different than 8 or 4 raises an error
        for connectivity in ["2", 6, "queen"]:
            with self.assertRaises(plc.InvalidConnectivityError) as cm:
                plc.label(self.grid, connectivity)
            self.assertIn("is not among", str(cm.exception))
        # the error is also a `ValueError`
        with self.assertRaises(ValueError):
            plc.label_landscape(self.grid, "2")
        # test that we can provide the argument as int as long as it is 8 or 4
        for connectivity in (8, 4):
            self.assertEqual(plc.check_connectivity(connectivity), str(connectivity))
        self.assertEqual(plc.check_connectivity(None), "8")

    def test_patches(self):
        grid = self.grid
        for connectivity in ["8", "4"]:
            class_label_dict = plc.label(grid, connectivity)
            self.assertEqual(list(class_label_dict), list(grid.classes))
            for class_val, label_arr in class_label_dict.items():
                # every non-missing cell belongs to exactly one patch of its class
                self.assertTrue(
                    np.array_equal(label_arr != 0, grid.arr == class_val)
                )
                # patch ids are dense
                self.assertTrue(
                    np.array_equal(
                        np.unique(label_arr[label_arr != 0]),
                        np.arange(1, label_arr.max() + 1),
                    )
                )

    def test_number_of_patches(self):
        # test that there is at most the same number of patches with the Moore
        # neighborhood than with Von Neumann's
        for seed in range(5):
            grid = plc.Grid(random_arr(seed), res=(1, 1))
            num_patches_8 = plc.label_landscape(grid, "8").max()
            num_patches_4 = plc.label_landscape(grid, "4").max()
            self.assertLessEqual(num_patches_8, num_patches_4)

        # in a checkerboard, each class is a single patch with the Moore neighborhood
        # and each cell is a patch with Von Neumann's
        grid = plc.Grid(CHECKERBOARD_ARR, res=(1, 1))
        self.assertEqual(plc.label_landscape(grid, 8).max(), 2)
        self.assertEqual(plc.label_landscape(grid, 4).max(), 16)

    def test_label_landscape(self):
        grid = self.grid
        label_arr = plc.label_landscape(grid)
        # globally unique and dense ids, zero only for missing data
        self.assertTrue(np.array_equal(label_arr == 0, ~grid.data_mask))
        self.assertTrue(
            np.array_equal(
                np.unique(label_arr[label_arr != 0]),
                np.arange(1, label_arr.max() + 1),
            )
        )
        # ids are assigned class by class in ascending order
        class_label_dict = plc.label(grid)
        offset = 0
        for class_val in grid.classes:
            class_cond = grid.arr == class_val
            self.assertTrue(
                np.array_equal(
                    label_arr[class_cond],
                    class_label_dict[class_val][class_cond] + offset,
                )
            )
            offset += class_label_dict[class_val].max()


class TestBoundary(unittest.TestCase):
    def test_core(self):
        label_arr = np.ones((5, 5), dtype=int)
        # the grid boundary counts as edge
        self.assertEqual(plc.core_mask(label_arr).sum(), 9)
        self.assertEqual(plc.core_mask(label_arr, edge_depth=2).sum(), 1)
        self.assertEqual(plc.core_mask(label_arr, edge_depth=3).sum(), 0)
        # the grid boundary does not count as edge
        self.assertEqual(plc.core_mask(label_arr, count_boundary=False).sum(), 25)

        with self.assertRaises(ValueError):
            plc.boundary(label_arr, edge_depth=0)
        with self.assertRaises(ValueError):
            plc.boundary(label_arr, edge_depth=1.5)

    def test_boundary_depth(self):
        grid = plc.Grid(random_arr(1, shape=(20, 20), num_classes=2), res=(1, 1))
        for label_arr in plc.label(grid).values():
            patch_mask = label_arr != 0
            for count_boundary in [True, False]:
                prev_edge_mask = plc.boundary(
                    label_arr, edge_depth=1, count_boundary=count_boundary
                )
                for edge_depth in range(1, 5):
                    edge_mask = plc.boundary(
                        label_arr, edge_depth=edge_depth, count_boundary=count_boundary
                    )
                    core_mask = plc.core_mask(
                        label_arr, edge_depth=edge_depth, count_boundary=count_boundary
                    )
                    # monotonic growth of the edge
                    self.assertFalse(np.any(prev_edge_mask & ~edge_mask))
                    # edge and core partition the patch cells
                    self.assertFalse(np.any(edge_mask & core_mask))
                    self.assertTrue(np.array_equal(edge_mask | core_mask, patch_mask))
                    prev_edge_mask = edge_mask

    def test_core_areas(self):
        grid = plc.Grid(DUMBBELL_ARR, res=(1, 1))
        label_arr = plc.label(grid)[1]
        self.assertEqual(label_arr.max(), 1)

        # the bridge is edge, so there are two disjunct core areas
        core_label_arr, num_core_patches = plc.core_label(label_arr)
        self.assertEqual(num_core_patches, 2)
        self.assertEqual(plc.number_of_core_areas(label_arr).tolist(), [2])
        self.assertEqual(
            plc.disjunct_core_areas(label_arr, grid.res, hectares=False).tolist(),
            [10, 10],
        )

        # a patch without core cells has zero core areas
        ncore_ser = plc.number_of_core_areas(label_arr, edge_depth=3)
        self.assertEqual(ncore_ser.tolist(), [0])
        self.assertEqual(ncore_ser.index.name, "patch_id")
        self.assertEqual(
            plc.core_area(label_arr, grid.res, edge_depth=3).tolist(), [0]
        )
        for class_label_arr in plc.label(grid).values():
            self.assertTrue(
                (plc.number_of_core_areas(class_label_arr, edge_depth=2) >= 0).all()
            )


class TestGeometry(unittest.TestCase):
    def test_area(self):
        for res in [(1, 1), (2, 3), (250, 250)]:
            grid = plc.Grid(random_arr(2), res=res)
            total_area = 0
            for class_val, label_arr in plc.label(grid).items():
                area_ser = plc.area(label_arr, grid.res, hectares=False)
                self.assertTrue((area_ser > 0).all())
                self.assertEqual(area_ser.index.name, "patch_id")
                # the areas of the patches sum up to the class area
                self.assertAlmostEqual(
                    area_ser.sum(), np.sum(grid.arr == class_val) * grid.cell_area
                )
                total_area += area_ser.sum()
                # hectares
                self.assertTrue(
                    np.allclose(
                        plc.area(label_arr, grid.res), area_ser / 10000
                    )
                )
            # and over all the classes, to the area of the non-missing cells
            self.assertAlmostEqual(total_area, grid.landscape_area)

    def test_single_patch(self):
        # a 3x3 single-class grid is a single patch of 9 cells and 12 cell sides
        grid = plc.Grid(np.ones((3, 3), dtype=int), res=(1, 1))
        class_label_dict = plc.label(grid)
        self.assertEqual(list(class_label_dict), [1])
        label_arr = class_label_dict[1]
        self.assertEqual(label_arr.max(), 1)
        self.assertEqual(plc.area(label_arr, grid.res, hectares=False).tolist(), [9])
        self.assertEqual(plc.perimeter(label_arr, grid.res).tolist(), [12])
        self.assertEqual(
            plc.perimeter(label_arr, grid.res, count_boundary=False).tolist(), [0]
        )
        self.assertAlmostEqual(plc.shape_index(label_arr, grid.res).iloc[0], 1)
        self.assertAlmostEqual(plc.fractal_dimension(label_arr, grid.res).iloc[0], 1)
        self.assertAlmostEqual(
            plc.perimeter_area_ratio(label_arr, grid.res, hectares=False).iloc[0],
            12 / 9,
        )
        centroid_df = plc.centroid(label_arr, grid.res)
        self.assertEqual(centroid_df.loc[1].tolist(), [1.5, 1.5])
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            enn_ser = plc.nearest_neighbor(label_arr, grid.res)
            self.assertTrue(
                any(
                    issubclass(_w.category, plc.InsufficientPatchesWarning)
                    for _w in w
                )
            )
        self.assertTrue(enn_ser.isna().all())

        # anisotropic resolution: horizontal sides are `cell_width` long and vertical
        # sides are `cell_height` long
        self.assertEqual(plc.area(label_arr, (2, 3), hectares=False).tolist(), [54])
        self.assertEqual(plc.perimeter(label_arr, (2, 3)).tolist(), [6 * 2 + 6 * 3])

    def test_patch_metrics_value_ranges(self):
        grid = plc.Grid(random_arr(3), res=(10, 10))
        for label_arr in plc.label(grid).values():
            self.assertTrue((plc.perimeter(label_arr, grid.res) >= 0).all())
            self.assertTrue((plc.perimeter_area_ratio(label_arr, grid.res) > 0).all())
            self.assertTrue((plc.shape_index(label_arr, grid.res) >= 1).all())
            self.assertTrue((plc.radius_of_gyration(label_arr, grid.res) >= 0).all())
            cai_ser = plc.core_area_index(label_arr, grid.res)
            self.assertTrue(((cai_ser >= 0) & (cai_ser < 100)).all())
            core_area_ser = plc.core_area(label_arr, grid.res)
            self.assertTrue(
                (core_area_ser <= plc.area(label_arr, grid.res) + 1e-12).all()
            )

        # single-cell patches have zero radius of gyration
        label_arr = plc.label(plc.Grid(CHECKERBOARD_ARR, res=(1, 1)), "4")[1]
        self.assertTrue((plc.radius_of_gyration(label_arr, (1, 1)) == 0).all())

    def test_fractal_dimension(self):
        # one-cell patches have an area of 1 at unit resolution, hence `ln(a) = 0`
        label_arr = plc.label(plc.Grid(CHECKERBOARD_ARR, res=(1, 1)), "4")[1]
        self.assertTrue(plc.fractal_dimension(label_arr, (1, 1)).isna().all())
        self.assertTrue(np.allclose(plc.fractal_dimension(label_arr, (10, 10)), 1))

    def test_contiguity_index(self):
        label_arr = plc.label(plc.Grid(CHECKERBOARD_ARR, res=(1, 1)), "4")[1]
        self.assertTrue((plc.contiguity_index(label_arr) == 0).all())

        class_label_dict = plc.label(
            plc.Grid(np.array([[1, 1, 2, 2, 2]]), res=(1, 1))
        )
        self.assertAlmostEqual(plc.contiguity_index(class_label_dict[1]).iloc[0], 1 / 6)
        self.assertAlmostEqual(plc.contiguity_index(class_label_dict[2]).iloc[0], 2 / 9)
        label_arr = plc.label(plc.Grid(np.ones((3, 3)), res=(1, 1)))[1]
        self.assertAlmostEqual(plc.contiguity_index(label_arr).iloc[0], 16 / 27)

        grid = plc.Grid(random_arr(10), res=(1, 1))
        for label_arr in plc.label(grid).values():
            contig_ser = plc.contiguity_index(label_arr)
            self.assertEqual(contig_ser.index.name, "patch_id")
            self.assertTrue(((contig_ser >= 0) & (contig_ser <= 1)).all())

    def test_related_circumscribing_circle(self):
        # squares are as compact as a raster patch can be
        for arr in [CHECKERBOARD_ARR, np.ones((3, 3))]:
            label_arr = plc.label(plc.Grid(arr, res=(1, 1)), "4")[1]
            self.assertTrue(
                np.allclose(
                    plc.related_circumscribing_circle(label_arr, (1, 1)), 1 - 2 / np.pi
                )
            )
        label_arr = plc.label(plc.Grid(np.array([[1, 1, 2]]), res=(1, 1)))[1]
        self.assertAlmostEqual(
            plc.related_circumscribing_circle(label_arr, (1, 1)).iloc[0],
            1 - 8 / (5 * np.pi),
        )
        # a single cell of 2x1
        label_arr = plc.label(plc.Grid(np.array([[1]]), res=(2, 1)))[1]
        self.assertAlmostEqual(
            plc.related_circumscribing_circle(label_arr, (2, 1)).iloc[0],
            1 - 8 / (5 * np.pi),
        )

        grid = plc.Grid(random_arr(11), res=(1, 1))
        for label_arr in plc.label(grid).values():
            circle_ser = plc.related_circumscribing_circle(label_arr, grid.res)
            self.assertTrue(((circle_ser >= 0) & (circle_ser < 1)).all())

    def test_core_area_index(self):
        label_arr = plc.label(plc.Grid(DUMBBELL_ARR, res=(1, 1)))[1]
        self.assertAlmostEqual(
            plc.core_area_index(label_arr, (1, 1)).iloc[0], 20 / 51 * 100
        )
        self.assertAlmostEqual(
            plc.core_area_index(label_arr, (1, 1), percent=False).iloc[0], 20 / 51
        )


class TestNearestNeighbor(unittest.TestCase):
    def test_compute_point_nearest_neighbor(self):
        self.assertEqual(
            proximity.compute_point_nearest_neighbor(
                np.array([0.0, 1.0, 5.0]),
                np.array([0.0, 0.0, 0.0]),
                np.array([1, 2, 1], dtype=np.int64),
            ).tolist(),
            [1.0, 1.0, 4.0],
        )

    def test_opposite_corners(self):
        arr = np.full((4, 4), 2)
        arr[0, 0] = 1
        arr[3, 3] = 1
        for res in [(1, 1), (2, 1)]:
            grid = plc.Grid(arr, res=res)
            label_arr = plc.label(grid)[1]
            self.assertEqual(label_arr.max(), 2)
            enn_ser = plc.nearest_neighbor(label_arr, grid.res)
            expected = np.hypot(3 * res[0], 3 * res[1])
            self.assertTrue(np.allclose(enn_ser.values, [expected, expected]))

    def test_brute_force(self):
        for seed, res in [(4, (1, 1)), (5, (2, 3))]:
            grid = plc.Grid(random_arr(seed, shape=(12, 12)), res=res)
            for class_val, label_arr in plc.label(grid).items():
                if label_arr.max() < 2:
                    continue
                enn_ser = plc.nearest_neighbor(label_arr, grid.res)
                # never below the smallest cell side
                self.assertTrue((enn_ser >= min(grid.res)).all())

                i_idx, j_idx = np.nonzero(label_arr)
                xy = np.column_stack(
                    ((j_idx + 0.5) * grid.cell_width, (i_idx + 0.5) * grid.cell_height)
                )
                labels = label_arr[i_idx, j_idx]
                dists = distance.cdist(xy, xy)
                dists[labels[:, None] == labels[None, :]] = np.inf
                expected_ser = pd.Series(dists.min(axis=1)).groupby(labels).min()
                self.assertTrue(np.allclose(enn_ser.values, expected_ser.values))

    def test_boundary_points(self):
        label_arr = plc.label(plc.Grid(DUMBBELL_ARR, res=(1, 1)))[2]
        points_df = plc.boundary_points(label_arr, (1, 1))
        self.assertEqual(list(points_df.columns), ["patch_id", "x", "y"])
        self.assertTrue(points_df["x"].is_monotonic_increasing)
        self.assertEqual(sorted(points_df["patch_id"].unique()), [1, 2])
        # the two patches are separated by the bridge of class 1
        enn_ser = plc.nearest_neighbor(label_arr, (1, 1), points_df=points_df)
        self.assertEqual(enn_ser.tolist(), [2, 2])

    def test_warnings(self):
        # nearest neighbor distances will be nan (and raise an informative warning) if
        # there are not at least two patches of each class
        arr = np.ones((4, 4))
        arr[1:-1, 1:-1] = 2
        grid = plc.Grid(arr, res=(1, 1))
        for class_val, label_arr in plc.label(grid).items():
            with warnings.catch_warnings(record=True) as w:
                warnings.simplefilter("always")
                enn_ser = plc.nearest_neighbor(
                    label_arr, grid.res, class_val=class_val
                )
                self.assertGreater(len(w), 0)
                self.assertTrue(
                    issubclass(w[0].category, plc.InsufficientPatchesWarning)
                )
            self.assertTrue(enn_ser.isna().all())


class TestAdjacency(unittest.TestCase):
    def test_kernels(self):
        self.assertEqual(plc.get_kernel_offsets(4), ((0, 1), (1, 0)))
        self.assertEqual(len(plc.get_kernel_offsets("8")), 4)
        self.assertEqual(plc.get_kernel_offsets("horizontal"), ((0, 1),))
        self.assertEqual(plc.get_kernel_offsets("vertical"), ((1, 0),))
        # NaN cells are not neighbors
        kernel = np.array([[np.nan, 1, np.nan], [1, 0, 1], [np.nan, 1, np.nan]])
        self.assertEqual(plc.get_kernel_offsets(kernel), plc.get_kernel_offsets(4))
        # larger custom kernel
        kernel = np.zeros((5, 5))
        kernel[2, 4] = 1
        self.assertEqual(plc.get_kernel_offsets(kernel), ((0, 2),))

        for kernel in ["foo", 6, np.ones((2, 2)), np.zeros((3, 3)), np.ones(3)]:
            with self.assertRaises(plc.InvalidKernelError):
                plc.get_kernel_offsets(kernel)

    def test_pad_grid(self):
        padded_arr = plc.pad_grid(np.array([[1, 0], [2, 1]]), -1, nodata=0)
        self.assertEqual(padded_arr.shape, (4, 4))
        self.assertTrue((padded_arr[0] == -1).all())
        self.assertTrue((padded_arr[:, -1] == -1).all())
        self.assertEqual(padded_arr[1, 2], -1)
        self.assertEqual(plc.pad_grid(np.ones((2, 2)), 0, pad_cells=2).shape, (6, 6))

    def test_adjacency_matrix(self):
        grid = plc.Grid(np.array([[1, 1], [1, 2]]), res=(1, 1))
        adjacency_df = plc.adjacency(grid, 4)
        self.assertEqual(list(adjacency_df.index), [1, 2, 0])
        self.assertEqual(list(adjacency_df.columns), [1, 2, 0])
        self.assertEqual(adjacency_df.loc[1, 1], 4)
        self.assertEqual(adjacency_df.loc[1, 2], 2)
        self.assertEqual(adjacency_df.loc[2, 1], 2)
        self.assertEqual(adjacency_df.loc[2, 2], 0)
        self.assertEqual(adjacency_df[0].sum(), 0)

        # padding counts the adjacencies with the outside of the grid
        padded_adjacency_df = plc.adjacency(grid, 4, pad=True)
        self.assertEqual(padded_adjacency_df.loc[1, 0], 6)
        self.assertEqual(padded_adjacency_df.loc[2, 0], 2)
        self.assertEqual(padded_adjacency_df.loc[1, 2], 2)

    def test_ordered(self):
        grid = plc.Grid(random_arr(6), res=(1, 1))
        for kernel in [4, 8, "horizontal", "vertical"]:
            for pad in [False, True]:
                ordered_df = plc.adjacency(grid, kernel, ordered=True, pad=pad)
                unordered_df = plc.adjacency(grid, kernel, ordered=False, pad=pad)
                self.assertTrue(np.array_equal(ordered_df.values, ordered_df.values.T))
                # the ordered matrix is exactly twice the unordered one
                self.assertTrue(
                    np.array_equal(ordered_df.values, 2 * unordered_df.values)
                )

    def test_total_edge(self):
        grid = plc.Grid(np.array([[1, 1], [1, 2]]), res=(2, 3))
        # one horizontal neighbor pair (3 long) and one vertical pair (2 long)
        self.assertEqual(plc.total_edge(grid), 5)
        self.assertEqual(plc.total_edge(grid, 1), 5)
        self.assertEqual(plc.total_edge(grid, 2), 5)
        self.assertEqual(plc.total_edge(grid, 2, count_boundary=True), 10)
        self.assertEqual(plc.total_edge(grid, count_boundary=True), 25)
        # single class without boundary
        self.assertEqual(plc.total_edge(plc.Grid(np.ones((3, 3)), res=(1, 1))), 0)

        # with the boundary, the class total edge equals the sum of its perimeters
        grid = plc.Grid(ARR, res=(2, 3))
        for class_val, label_arr in plc.label(grid).items():
            self.assertAlmostEqual(
                plc.total_edge(grid, class_val, count_boundary=True),
                plc.perimeter(label_arr, grid.res).sum(),
            )
            self.assertLessEqual(
                plc.total_edge(grid, class_val),
                plc.total_edge(grid, class_val, count_boundary=True),
            )

    def test_percentage_of_like_adjacencies(self):
        grid = plc.Grid(CHECKERBOARD_ARR, res=(1, 1))
        self.assertEqual(plc.percentage_of_like_adjacencies(grid), 0)
        grid = plc.Grid(np.ones((3, 3)), res=(1, 1))
        self.assertAlmostEqual(plc.percentage_of_like_adjacencies(grid), 24 / 36 * 100)
        self.assertAlmostEqual(
            plc.percentage_of_like_adjacencies(grid, percent=False), 24 / 36
        )
        # adjacencies with missing cells are ignored, whereas the outside of the grid
        # counts as unlike
        arr = np.ones((3, 3))
        arr[1, 1] = 0
        grid = plc.Grid(arr, res=(1, 1))
        self.assertAlmostEqual(plc.percentage_of_like_adjacencies(grid), 16 / 28 * 100)
        arr = np.array([[1, 1, 0, 2]])
        grid = plc.Grid(arr, res=(1, 1))
        self.assertAlmostEqual(plc.percentage_of_like_adjacencies(grid), 2 / 10 * 100)


class TestComplexity(unittest.TestCase):
    def test_compute_entropy(self):
        self.assertAlmostEqual(plc.compute_entropy([1, 1], base=2), 1)
        self.assertEqual(plc.compute_entropy([5, 0], base=2), 0)
        self.assertAlmostEqual(plc.compute_entropy([1, 1, 1]), np.log(3))

    def test_exact_values(self):
        grid = plc.Grid(np.array([[1, 1], [1, 2]]), res=(1, 1))
        self.assertAlmostEqual(
            plc.entropy(grid), -(0.75 * np.log2(0.75) + 0.25 * np.log2(0.25))
        )
        self.assertAlmostEqual(plc.joint_entropy(grid), 1.5)

        grid = plc.Grid(CHECKERBOARD_ARR, res=(1, 1))
        self.assertAlmostEqual(plc.entropy(grid), 1)
        self.assertAlmostEqual(plc.joint_entropy(grid), 1)
        self.assertAlmostEqual(plc.conditional_entropy(grid), 0)
        self.assertAlmostEqual(plc.mutual_information(grid), 1)
        self.assertAlmostEqual(plc.relative_mutual_information(grid), 1)
        self.assertAlmostEqual(plc.contagion(grid), 50)
        self.assertAlmostEqual(plc.contagion(grid, percent=False), 0.5)
        self.assertAlmostEqual(plc.joint_entropy(grid, ordered=False), 0)
        self.assertEqual(plc.patch_richness(grid), 2)
        self.assertEqual(plc.relative_patch_richness(grid, classes_max=4), 50)

    def test_relations(self):
        grid = plc.Grid(random_arr(7), res=(1, 1))
        for neighborhood in [4, 8]:
            kwargs = dict(neighborhood=neighborhood)
            ent = plc.entropy(grid, **kwargs)
            joinent = plc.joint_entropy(grid, **kwargs)
            condent = plc.conditional_entropy(grid, **kwargs)
            mutinf = plc.mutual_information(grid, **kwargs)
            self.assertGreaterEqual(ent, 0)
            self.assertGreaterEqual(joinent, ent)
            self.assertAlmostEqual(condent, joinent - ent)
            self.assertAlmostEqual(mutinf, ent - condent)
            self.assertAlmostEqual(
                plc.relative_mutual_information(grid, **kwargs), mutinf / ent
            )
            self.assertTrue(0 < plc.contagion(grid) <= 100)

        # change of logarithm base
        self.assertAlmostEqual(
            plc.entropy(grid, base="log"), plc.entropy(grid, base=2) * np.log(2)
        )
        self.assertAlmostEqual(
            plc.joint_entropy(grid, base="log10"),
            plc.joint_entropy(grid, base=10),
        )
        for base in ["log3", 1, -2]:
            with self.assertRaises(ValueError):
                plc.entropy(grid, base=base)

    def test_single_class(self):
        grid = plc.Grid(np.ones((4, 4)), res=(1, 1))
        for func in [
            plc.entropy,
            plc.joint_entropy,
            plc.conditional_entropy,
            plc.mutual_information,
        ]:
            self.assertEqual(func(grid), 0)
        # relative mutual information is 1 when the mutual information is 0
        self.assertEqual(plc.relative_mutual_information(grid), 1)
        # contagion requires at least two classes
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            self.assertTrue(np.isnan(plc.contagion(grid)))
            self.assertGreater(len(w), 0)
        # relative patch richness requires the maximum number of classes
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            self.assertTrue(np.isnan(plc.relative_patch_richness(grid)))
            self.assertGreater(len(w), 0)
        grid = plc.Grid(np.ones((4, 4)), res=(1, 1), classes_max=5)
        self.assertEqual(plc.relative_patch_richness(grid), 20)

    def test_shannon_indices(self):
        grid = plc.Grid(CHECKERBOARD_ARR, res=(1, 1))
        self.assertAlmostEqual(plc.shannon_diversity_index(grid), np.log(2))
        self.assertAlmostEqual(plc.shannon_evenness_index(grid), 1)

        # proportions of the cells that are not missing data
        grid = plc.Grid(ARR, res=(1, 1))
        props = np.array([np.sum(ARR == class_val) for class_val in [1, 2, 3]]) / 34
        self.assertAlmostEqual(
            plc.shannon_diversity_index(grid), -np.sum(props * np.log(props))
        )
        self.assertAlmostEqual(
            plc.shannon_evenness_index(grid),
            -np.sum(props * np.log(props)) / np.log(3),
        )

        grid = plc.Grid(np.ones((4, 4)), res=(1, 1))
        self.assertEqual(plc.shannon_diversity_index(grid), 0)
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            self.assertTrue(np.isnan(plc.shannon_evenness_index(grid)))
            self.assertGreater(len(w), 0)


class TestFragmentation(unittest.TestCase):
    def setUp(self):
        # class 1 is a single patch of 51 cells, class 2 are two patches of 2 cells
        self.grid = plc.Grid(DUMBBELL_ARR, res=(1, 1))

    def test_effective_mesh_size(self):
        grid = self.grid
        self.assertAlmostEqual(
            plc.effective_mesh_size(grid, 1, hectares=False), 51**2 / 55
        )
        self.assertAlmostEqual(plc.effective_mesh_size(grid, 2, hectares=False), 8 / 55)
        self.assertAlmostEqual(
            plc.effective_mesh_size(grid, hectares=False), (51**2 + 8) / 55
        )
        self.assertAlmostEqual(
            plc.effective_mesh_size(grid), (51**2 + 8) / 55 / 10000
        )
        # a single patch covering the grid
        grid = plc.Grid(np.ones((3, 3)), res=(10, 10))
        self.assertAlmostEqual(
            plc.effective_mesh_size(grid, hectares=False), grid.landscape_area
        )
        with self.assertRaises(ValueError) as cm:
            plc.effective_mesh_size(grid, 5)
        self.assertIn("is not among", str(cm.exception))

    def test_splitting_index(self):
        grid = self.grid
        self.assertAlmostEqual(plc.splitting_index(grid, 1), 55**2 / 51**2)
        self.assertAlmostEqual(plc.splitting_index(grid, 2), 55**2 / 8)
        self.assertAlmostEqual(plc.splitting_index(grid), 55**2 / (51**2 + 8))
        # the number of cells when each cell is a patch
        grid = plc.Grid(CHECKERBOARD_ARR, res=(1, 1))
        self.assertAlmostEqual(plc.splitting_index(grid, connectivity=4), 16)
        self.assertAlmostEqual(plc.splitting_index(grid, connectivity=8), 2)

    def test_patch_cohesion_index(self):
        grid = self.grid
        # the perimeter of each patch cancels out
        self.assertAlmostEqual(
            plc.patch_cohesion_index(grid, 1),
            (1 - 1 / np.sqrt(51)) / (1 - 1 / np.sqrt(55)) * 100,
        )
        self.assertAlmostEqual(
            plc.patch_cohesion_index(grid, 2, percent=False),
            (1 - 1 / np.sqrt(2)) / (1 - 1 / np.sqrt(55)),
        )
        grid = plc.Grid(random_arr(12), res=(1, 1))
        for class_val in [None] + list(grid.classes):
            self.assertTrue(0 <= plc.patch_cohesion_index(grid, class_val) < 100)

    def test_perimeter_area_fractal_dimension(self):
        # squares of different sizes, separated by class 2
        sides = [1, 2, 3, 4] * 3
        arr = np.full((6, sum(side + 1 for side in sides) + 1), 2)
        j = 1
        for side in sides:
            arr[1 : 1 + side, j : j + side] = 1
            j += side + 1
        for res in [(1, 1), (10, 10)]:
            grid = plc.Grid(arr, res=res)
            self.assertAlmostEqual(plc.perimeter_area_fractal_dimension(grid, 1), 1)

        # less than 10 patches
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            self.assertTrue(np.isnan(plc.perimeter_area_fractal_dimension(grid, 2)))
            self.assertTrue(
                issubclass(w[0].category, plc.InsufficientPatchesWarning)
            )

        # all the patches have the same perimeter
        arr = np.full((4, 31), 2)
        arr[1:3, 1::3] = 1
        arr[1:3, 2::3] = 1
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            self.assertTrue(
                np.isnan(
                    plc.perimeter_area_fractal_dimension(plc.Grid(arr, res=(1, 1)), 1)
                )
            )
            self.assertGreater(len(w), 0)

    def test_cache(self):
        cache = plc.ExtrasCache(self.grid, "4")
        for func in [
            plc.effective_mesh_size,
            plc.splitting_index,
            plc.patch_cohesion_index,
        ]:
            for class_val in [None, 1, 2]:
                # the connectivity of the cache is used
                self.assertEqual(
                    func(self.grid, class_val, connectivity=4),
                    func(self.grid, class_val, cache=cache),
                )


class TestAllMissing(unittest.TestCase):
    def setUp(self):
        self.grids = [
            plc.Grid(np.zeros((5, 5), dtype=int), res=(1, 1)),
            plc.Grid(np.full((5, 5), np.nan), res=(1, 1)),
        ]

    def test_primitives(self):
        for grid in self.grids:
            self.assertTrue(grid.all_missing)
            self.assertEqual(plc.label(grid), {})
            label_arr = plc.label_landscape(grid)
            self.assertFalse(label_arr.any())
            self.assertEqual(len(plc.area(label_arr, grid.res)), 0)
            self.assertEqual(len(plc.perimeter(label_arr, grid.res)), 0)
            self.assertFalse(plc.boundary(label_arr).any())
            with warnings.catch_warnings(record=True):
                warnings.simplefilter("always")
                self.assertEqual(len(plc.nearest_neighbor(label_arr, grid.res)), 0)
            # only the background sentinel
            self.assertEqual(list(plc.adjacency(grid).columns), [grid.nodata])

            for func in [
                plc.total_edge,
                plc.entropy,
                plc.joint_entropy,
                plc.conditional_entropy,
                plc.mutual_information,
                plc.relative_mutual_information,
                plc.contagion,
                plc.percentage_of_like_adjacencies,
                plc.patch_richness,
                plc.shannon_diversity_index,
                plc.shannon_evenness_index,
                plc.effective_mesh_size,
                plc.splitting_index,
                plc.patch_cohesion_index,
                plc.perimeter_area_fractal_dimension,
            ]:
                with warnings.catch_warnings(record=True) as w:
                    warnings.simplefilter("always")
                    self.assertTrue(np.isnan(func(grid)))
                    self.assertTrue(
                        issubclass(w[0].category, plc.AllMissingGridWarning)
                    )

    def test_records(self):
        for grid in self.grids:
            with warnings.catch_warnings(record=True) as w:
                warnings.simplefilter("always")
                records_df = plc.compute_records(grid)
                self.assertGreater(len(w), 0)
            self.assertEqual(
                len(records_df),
                len(plc.PATCH_METRICS)
                + len(plc.CLASS_METRICS)
                + len(plc.LANDSCAPE_METRICS),
            )
            self.assertTrue(records_df["value"].isna().all())
            self.assertTrue(records_df["class"].isna().all())
            self.assertTrue(records_df["id"].isna().all())


class TestExtrasCache(unittest.TestCase):
    def setUp(self):
        self.grid = plc.Grid(random_arr(8), res=(2, 3))

    def test_cache_equivalence(self):
        grid = self.grid
        cache = plc.ExtrasCache(grid)

        class_label_dict = plc.label(grid)
        cached_class_label_dict = plc.label(grid, cache=cache)
        self.assertEqual(list(class_label_dict), list(cached_class_label_dict))
        for class_val, label_arr in class_label_dict.items():
            self.assertTrue(
                np.array_equal(label_arr, cached_class_label_dict[class_val])
            )
            pd.testing.assert_series_equal(
                plc.nearest_neighbor(label_arr, grid.res),
                plc.nearest_neighbor(
                    label_arr, grid.res, points_df=cache.boundary_points[class_val]
                ),
            )
            pd.testing.assert_series_equal(
                plc.nearest_neighbor(label_arr, grid.res),
                plc.nearest_neighbor(
                    label_arr, grid.res, class_val=class_val, cache=cache
                ),
            )
        self.assertTrue(
            np.array_equal(
                plc.label_landscape(grid), plc.label_landscape(grid, cache=cache)
            )
        )
        # a cache with another connectivity is ignored
        self.assertEqual(
            plc.label_landscape(grid, 4, cache=cache).max(),
            plc.label_landscape(grid, 4).max(),
        )

        for kernel in [4, 8, "horizontal"]:
            for ordered in [True, False]:
                pd.testing.assert_frame_equal(
                    plc.adjacency(grid, kernel, ordered),
                    plc.adjacency(grid, kernel, ordered, cache=cache),
                )

        for func in [
            plc.entropy,
            plc.joint_entropy,
            plc.conditional_entropy,
            plc.mutual_information,
            plc.relative_mutual_information,
        ]:
            self.assertEqual(func(grid), func(grid, cache=cache))
            # entropy parameters other than the cache's
            self.assertAlmostEqual(
                func(grid, neighborhood=8, base="log", ordered=False),
                func(grid, neighborhood=8, base="log", ordered=False, cache=cache),
            )
        self.assertEqual(plc.contagion(grid), plc.contagion(grid, cache=cache))
        for class_val in [None] + list(grid.classes):
            for count_boundary in [True, False]:
                self.assertEqual(
                    plc.total_edge(grid, class_val, count_boundary=count_boundary),
                    plc.total_edge(
                        grid, class_val, count_boundary=count_boundary, cache=cache
                    ),
                )

    def test_read_only(self):
        cache = plc.ExtrasCache.from_metrics(
            self.grid, plc.PATCH_METRICS + plc.LANDSCAPE_METRICS
        )
        class_val = self.grid.classes[0]
        with self.assertRaises(ValueError):
            cache.class_label_arrs[class_val][0, 0] = 99
        with self.assertRaises(TypeError):
            cache.class_label_arrs[class_val] = None
        with self.assertRaises(ValueError):
            cache.landscape_label_arr[0, 0] = 99
        # modifying the returned adjacency data frame does not affect the cache
        adjacency_df = plc.adjacency(self.grid, cache=cache)
        adjacency_df.iloc[0, 0] = -1
        self.assertNotEqual(plc.adjacency(self.grid, cache=cache).iloc[0, 0], -1)

    def test_lazy_build(self):
        cache = plc.ExtrasCache(self.grid)
        self.assertNotIn("class_label_arrs", repr(cache))
        with self.assertLogs("pylandcore.cache", level="DEBUG"):
            cache.class_label_arrs
        self.assertIn("class_label_arrs", repr(cache))
        self.assertEqual(
            sum(cache.num_patches_dict.values()), plc.label_landscape(self.grid).max()
        )

        cache = plc.ExtrasCache.from_metrics(
            self.grid,
            ["entropy", "euclidean_nearest_neighbor"],
            metrics_kwargs={"entropy": {"base": 10, "neighborhood": 8}},
        )
        offsets, ordered, base = cache.entropy_params
        self.assertEqual(offsets, plc.get_kernel_offsets(8))
        self.assertEqual(base, 10)
        self.assertIn("entropy_terms", repr(cache))
        self.assertIn("boundary_points", repr(cache))
        self.assertAlmostEqual(
            cache.entropy_terms.ent, plc.entropy(self.grid, neighborhood=8, base=10)
        )

        with self.assertRaises(plc.InvalidConnectivityError):
            plc.ExtrasCache(self.grid, "2")

    def test_nearest_neighbor_cache(self):
        cache = plc.ExtrasCache(self.grid)
        class_val = self.grid.classes[0]
        label_arr = cache.class_label_arrs[class_val]
        # the class is needed to retrieve the cached edge points
        plc.nearest_neighbor(label_arr, self.grid.res, cache=cache)
        self.assertNotIn("boundary_points", repr(cache))
        enn_ser = plc.nearest_neighbor(
            label_arr, self.grid.res, class_val=class_val, cache=cache
        )
        self.assertIn("boundary_points", repr(cache))
        pd.testing.assert_series_equal(
            enn_ser, plc.nearest_neighbor(label_arr, self.grid.res)
        )


class TestRecords(unittest.TestCase):
    def setUp(self):
        self.grid = plc.Grid(ARR, res=(10, 10))

    def test_schema(self):
        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            records_df = plc.compute_records(self.grid)
        self.assertEqual(list(records_df.columns), plc.RECORD_COLUMNS)
        self.assertEqual(
            set(records_df["level"]), {"patch", "class", "landscape"}
        )

        patch_df = records_df[records_df["level"] == "patch"]
        num_patches = plc.label_landscape(self.grid).max()
        for metric in ["area", "perim", "enn", "ncore", "core", "contig", "circle"]:
            metric_df = patch_df[patch_df["metric"] == metric]
            # patch ids are unique across classes
            self.assertEqual(metric_df["id"].tolist(), list(range(1, num_patches + 1)))
        self.assertTrue(patch_df["class"].notna().all())

        class_df = records_df[records_df["level"] == "class"]
        self.assertTrue(class_df["id"].isna().all())
        self.assertEqual(
            set(class_df["metric"]),
            {"ca", "np", "te", "tca", "ndca", "mesh", "split", "cohesion", "pafrac"},
        )

        landscape_df = records_df[records_df["level"] == "landscape"]
        self.assertTrue(landscape_df["class"].isna().all())
        self.assertTrue(landscape_df["id"].isna().all())
        self.assertAlmostEqual(
            landscape_df.set_index("metric").loc["ta", "value"],
            self.grid.landscape_area / 10000,
        )
        self.assertEqual(
            landscape_df.set_index("metric").loc["np", "value"], num_patches
        )

    def test_values(self):
        grid = self.grid
        patch_df = plc.compute_patch_records(
            grid, metrics=["area"], metrics_kwargs={"area": {"hectares": False}}
        )
        label_arr = plc.label_landscape(grid)
        self.assertTrue(
            np.allclose(
                patch_df["value"].values,
                plc.area(label_arr, grid.res, hectares=False).values,
            )
        )

        class_df = plc.compute_class_records(grid, metrics=["total_area"])
        class_label_dict = plc.label(grid)
        for class_val, value in zip(class_df["class"], class_df["value"]):
            self.assertAlmostEqual(
                value, plc.area(class_label_dict[class_val], grid.res).sum()
            )

        class_df = plc.compute_class_records(
            grid, metrics=["effective_mesh_size"], connectivity=4
        )
        for class_val, value in zip(class_df["class"], class_df["value"]):
            self.assertAlmostEqual(
                value, plc.effective_mesh_size(grid, class_val, connectivity=4)
            )
        self.assertEqual(class_df["metric"].unique().tolist(), ["mesh"])

        landscape_df = plc.compute_landscape_records(
            grid, metrics=["entropy"], metrics_kwargs={"entropy": {"base": "log"}}
        )
        self.assertAlmostEqual(
            landscape_df["value"].iloc[0], plc.entropy(grid, base="log")
        )

    def test_metric_errors(self):
        # try that raised ValueErrors have different error messages depending on the
        # context
        with self.assertRaises(ValueError) as cm:
            plc.compute_patch_records(self.grid, metrics=["foo"])
        self.assertIn("is not among", str(cm.exception))
        with self.assertRaises(ValueError) as cm:
            plc.compute_class_records(self.grid, metrics=["area"])
        self.assertIn("cannot be computed at the class level", str(cm.exception))
        with self.assertRaises(ValueError) as cm:
            plc.compute_landscape_records(
                self.grid, metrics=["entropy"], metrics_kwargs={"entropy": {"foo": 1}}
            )
        self.assertIn("cannot be computed", str(cm.exception))
        with self.assertRaises(plc.InvalidConnectivityError):
            plc.compute_class_records(self.grid, connectivity="2")
        cache = plc.ExtrasCache(self.grid, "4")
        with self.assertRaises(ValueError):
            plc.compute_class_records(self.grid, connectivity="8", cache=cache)

    def test_connectivity(self):
        for connectivity in ["8", "4"]:
            class_df = plc.compute_class_records(
                self.grid, metrics=["number_of_patches"], connectivity=connectivity
            )
            self.assertEqual(
                class_df["value"].sum(),
                plc.label_landscape(self.grid, connectivity).max(),
            )

    def test_single_cache(self):
        # the records computed at once equal the ones computed level by level
        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            records_df = plc.compute_records(self.grid)
            level_records_df = pd.concat(
                [
                    plc.compute_patch_records(self.grid),
                    plc.compute_class_records(self.grid),
                    plc.compute_landscape_records(self.grid),
                ],
                ignore_index=True,
            )
        pd.testing.assert_frame_equal(records_df, level_records_df)

        # skip levels
        records_df = plc.compute_records(
            self.grid, patch_metrics=[], landscape_metrics=[]
        )
        self.assertEqual(set(records_df["level"]), {"class"})


class TestMultiLayer(unittest.TestCase):
    def setUp(self):
        self.arrs = np.stack([ARR, random_arr(9, shape=ARR.shape)])

    def test_layers_records(self):
        kwargs = dict(landscape_metrics=["total_edge", "entropy", "contagion"])
        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            layers_df = plc.compute_layers_records(
                self.arrs, res=(10, 10), progress_bar=False, **kwargs
            )
            self.assertEqual(list(layers_df.columns), plc.RECORD_COLUMNS + ["layer"])
            self.assertEqual(sorted(layers_df["layer"].unique()), [1, 2])
            for layer, arr in enumerate(self.arrs, start=1):
                pd.testing.assert_frame_equal(
                    layers_df[layers_df["layer"] == layer]
                    .drop(columns="layer")
                    .reset_index(drop=True),
                    plc.compute_records(plc.Grid(arr, res=(10, 10)), **kwargs),
                )

            # grid instances and progress bar
            grids = [plc.Grid(arr, res=(10, 10)) for arr in self.arrs]
            pd.testing.assert_frame_equal(
                plc.compute_layers_records(grids, progress_bar=True, **kwargs),
                layers_df,
            )

    def test_all_missing_layer(self):
        arrs = np.stack([ARR, np.zeros_like(ARR)])
        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            layers_df = plc.compute_layers_records(
                arrs, res=(1, 1), progress_bar=False, class_metrics=["total_area"]
            )
        self.assertTrue(layers_df[layers_df["layer"] == 2]["value"].isna().all())
        self.assertTrue(layers_df[layers_df["layer"] == 1]["value"].notna().any())
