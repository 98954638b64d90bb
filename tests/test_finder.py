import threading
import unittest

from s3_resources.exceptions import PatternConfigurationError, S3AccessError
from s3_resources.s3.finder import S3Finder
from s3_resources.s3.listing import S3Lister
from s3_resources.s3.patterns import tokenize, tokenize_path
from s3_resources.s3.resource import Precision

from .fake_s3 import FakeS3Client, make_objects, make_versions

TREE = [
    "0",
    "a/x",
    "a/y",
    "b",
    "c/d/e",
    "logs/2023/old.gz",
    "logs/2024/a.gz",
    "logs/2024/a.txt",
    "logs/2024/tmp.gz",
    "logs/2024/tmp/x.gz",
    "logs/2024/q/keep/b",
    "logs/2024/keep/c",
    "logs/2024/q/r/keep/d",
    "other/2024/a.gz",
]


def finder(client, precision=Precision.OBJECT, **kwargs):
    return S3Finder(S3Lister(client), "bucket", precision, **kwargs)


def keys(resources):
    return [resource.key for resource in resources]


def version_names(resources):
    return sorted(resource.name for resource in resources)


class FinderOrderingTests(unittest.TestCase):
    def test_descendants_precede_own_content(self):
        client = FakeS3Client(objects=make_objects(["0", "a/x", "a/y", "b"]))
        self.assertEqual(["a/x", "a/y", "0", "b"], keys(finder(client)))

    def test_placeholder_objects_are_not_emitted(self):
        client = FakeS3Client(objects=make_objects(["a/", "a/x"]))
        self.assertEqual(["a/x"], keys(finder(client)))

    def test_lazy_until_first_pull(self):
        client = FakeS3Client(objects=make_objects(["a"]))
        found = finder(client)
        self.assertEqual([], client.calls)

        self.assertEqual("a", found.produce_next().key)
        self.assertEqual(1, len(client.calls))

    def test_exhausted_finder_stays_exhausted(self):
        client = FakeS3Client(objects=make_objects(["a", "b/c"]))
        found = finder(client)
        self.assertEqual(2, len(list(found)))
        calls = len(client.calls)

        self.assertIsNone(found.produce_next())
        self.assertIsNone(found.produce_next())
        with self.assertRaises(StopIteration):
            next(found)
        self.assertEqual(calls, len(client.calls))


class FinderPagingTests(unittest.TestCase):
    def test_page_size_one_yields_same_objects(self):
        expected = sorted(keys(finder(FakeS3Client(objects=make_objects(TREE)))))
        client = FakeS3Client(objects=make_objects(TREE))

        found = keys(finder(client, page_size=1))

        self.assertEqual(len(TREE), len(found))
        self.assertEqual(expected, sorted(found))
        self.assertTrue(all(kwargs.get("MaxKeys") == 1 for _, kwargs in client.calls))

    def test_child_listings_start_fresh(self):
        client = FakeS3Client(objects=make_objects(TREE))
        list(finder(client, page_size=1))

        first_calls = {}
        for _, kwargs in client.calls:
            first_calls.setdefault(kwargs.get("Prefix"), kwargs)
        self.assertTrue(all("ContinuationToken" not in kwargs for kwargs in first_calls.values()))

    def test_page_size_one_yields_same_versions(self):
        versions = make_versions({"a/x": 2, "b": 3, "c/d/e": 1}, delete_markers={"b"})
        expected = version_names(finder(FakeS3Client(versions=versions), Precision.VERSION))

        found = list(finder(FakeS3Client(versions=versions), Precision.VERSION, page_size=1))

        self.assertEqual(7, len(found))
        self.assertEqual(expected, version_names(found))

    def test_versions_split_between_pages(self):
        client = FakeS3Client(versions=make_versions({"a": 2, "k": 5}), page_size=5)

        found = list(finder(client, Precision.VERSION))

        self.assertEqual(
            ["a@a-v0", "a@a-v1"] + [f"k@k-v{i}" for i in range(5)],
            [resource.name for resource in found],
        )
        self.assertEqual("k", client.calls[1][1]["KeyMarker"])
        self.assertNotIn("VersionIdMarker", client.calls[1][1])

    def test_key_cut_mid_versions_keeps_order(self):
        client = FakeS3Client(versions=make_versions({"k": 5}), page_size=3)

        found = list(finder(client, Precision.VERSION))

        self.assertEqual([f"k@k-v{i}" for i in range(5)], [resource.name for resource in found])
        self.assertEqual("k-v1", client.calls[2][1]["VersionIdMarker"])

    def test_versions_of_one_key_across_three_pages(self):
        client = FakeS3Client(versions=make_versions({"k": 7}), page_size=5)

        found = list(finder(client, Precision.VERSION))

        self.assertEqual([f"k@k-v{i}" for i in range(7)], [resource.name for resource in found])
        self.assertEqual(3, len(client.calls))

    def test_repeated_enumerations_give_same_sequence(self):
        objects = FakeS3Client(objects=make_objects(TREE), page_size=1)
        versions = FakeS3Client(
            versions=make_versions({"a/x": 2, "b": 3, "c/d/e": 1, "k": 4}, delete_markers={"b"}), page_size=1
        )
        for client, precision in ((objects, Precision.OBJECT), (versions, Precision.VERSION)):
            with self.subTest(precision=precision):
                first = [resource.name for resource in finder(client, precision)]
                second = [resource.name for resource in finder(client, precision)]

                self.assertTrue(first)
                self.assertEqual(first, second)

    def test_delete_markers_are_enumerated(self):
        client = FakeS3Client(versions=make_versions({"a": 1}, delete_markers={"a"}))

        found = list(finder(client, Precision.VERSION))

        self.assertEqual(["a@a-v0", "a@a-dm"], [resource.name for resource in found])
        self.assertTrue(found[-1].is_delete_marker)
        self.assertTrue(found[-1].is_latest)
        self.assertFalse(found[0].is_latest)

    def test_concurrent_pulls_share_one_enumeration(self):
        found = finder(FakeS3Client(objects=make_objects(TREE)), page_size=2)
        results = []
        results_lock = threading.Lock()

        def drain():
            while True:
                resource = found.produce_next()
                if resource is None:
                    return
                with results_lock:
                    results.append(resource.key)

        threads = [threading.Thread(target=drain) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(TREE), sorted(results))


class FinderPatternTests(unittest.TestCase):
    INCLUDES = ["logs/2024/*.gz", "logs/2024/**/keep/*"]
    EXCLUDES = ["**/tmp/**"]

    def test_patterns_with_and_without_prefix_optimization(self):
        patterns = tokenize(self.INCLUDES, self.EXCLUDES)
        expected = sorted(key for key in TREE if patterns.allows(tokenize_path(key)))

        optimised_client = FakeS3Client(objects=make_objects(TREE))
        optimised = keys(finder(optimised_client, includes=self.INCLUDES, excludes=self.EXCLUDES))
        plain = keys(
            finder(
                FakeS3Client(objects=make_objects(TREE)),
                includes=self.INCLUDES,
                excludes=self.EXCLUDES,
                prefix_optimization=False,
            )
        )

        self.assertEqual(
            ["logs/2024/a.gz", "logs/2024/keep/c", "logs/2024/q/keep/b", "logs/2024/q/r/keep/d", "logs/2024/tmp.gz"],
            expected,
        )
        self.assertEqual(expected, sorted(optimised))
        self.assertEqual(expected, sorted(plain))
        self.assertEqual("logs/2024/", optimised_client.calls[0][1]["Prefix"])
        self.assertNotIn("logs/2024/tmp/", optimised_client.prefixes_requested)

    def test_case_sensitive_matching(self):
        objects = make_objects(["FOO/a", "foo/b", "Foo/c/d"])

        sensitive = keys(finder(FakeS3Client(objects=objects), includes=["FOO/*"]))
        insensitive = keys(finder(FakeS3Client(objects=objects), includes=["FOO/*"], case_sensitive=False))

        self.assertEqual(["FOO/a"], sensitive)
        self.assertEqual(["FOO/a", "foo/b"], sorted(insensitive))

    def test_unrelated_prefixes_are_not_listed(self):
        client = FakeS3Client(objects=make_objects(["a/1", "b/1", "b/2/3"]))

        found = keys(finder(client, includes=["A/*"], case_sensitive=False))

        self.assertEqual(["a/1"], found)
        self.assertEqual([None, "a/"], client.prefixes_requested)

    def test_excluded_subtree_is_not_listed(self):
        client = FakeS3Client(objects=make_objects(["keep/1", "tmp/1", "tmp/2/3"]))

        self.assertEqual(["keep/1"], keys(finder(client, excludes=["tmp/**"])))
        self.assertNotIn("tmp/", client.prefixes_requested)

    def test_excludes_only_still_recurses(self):
        client = FakeS3Client(objects=make_objects(["a/b/c", "x/y"]))
        self.assertEqual(["a/b/c"], keys(finder(client, excludes=["x/**"])))

    def test_literal_prefix_requires_case_sensitivity(self):
        objects = make_objects(["logs/2024/a", "logs/2023/b"])
        sensitive = FakeS3Client(objects=objects)
        insensitive = FakeS3Client(objects=objects)

        self.assertEqual(["logs/2024/a"], keys(finder(sensitive, includes=["logs/2024/*"])))
        self.assertEqual(
            ["logs/2024/a"], keys(finder(insensitive, includes=["logs/2024/*"], case_sensitive=False))
        )
        self.assertEqual("logs/2024/", sensitive.calls[0][1]["Prefix"])
        self.assertNotIn("Prefix", insensitive.calls[0][1])

    def test_custom_delimiter(self):
        client = FakeS3Client(objects=make_objects(["a:x", "a:y:z", "b"]))

        found = keys(finder(client, delimiter=":", includes=["a:*"]))

        self.assertEqual(["a:x"], found)
        self.assertEqual("a:", client.calls[0][1]["Prefix"])
        self.assertEqual(":", client.calls[0][1]["Delimiter"])


class FinderErrorTests(unittest.TestCase):
    def test_listing_failure_surfaces(self):
        client = FakeS3Client(objects=make_objects(["a/x"]), fail_on_call=2)
        found = finder(client)

        with self.assertRaises(S3AccessError) as ctx:
            found.produce_next()
        self.assertIsNotNone(ctx.exception.__cause__)

    def test_invalid_configuration_fails_before_listing(self):
        client = FakeS3Client(objects=make_objects(["a"]))
        invalid = [
            dict(includes=["a", 3]),
            dict(delimiter=""),
            dict(page_size=0),
            dict(page_size=1001),
            dict(page_size=True),
        ]
        for kwargs in invalid:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(PatternConfigurationError):
                    finder(client, **kwargs)

        with self.assertRaises(PatternConfigurationError):
            S3Finder(S3Lister(client), "  ")
        with self.assertRaises(PatternConfigurationError):
            S3Finder(S3Lister(client), "bucket", "file")
        self.assertEqual([], client.calls)


if __name__ == "__main__":
    unittest.main()
