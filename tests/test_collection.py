import tempfile
import unittest
from pathlib import Path

from s3_resources.s3.collection import ObjectResources, enumerate_resources
from s3_resources.s3.finder import S3Finder
from s3_resources.s3.resource import Precision
from s3_resources.s3.selectors import AttributeSelector, FlagSelector, MatchAs

from .fake_s3 import FakeS3Client, make_objects, make_versions

KEYS = ["a/x.gz", "a/y.txt", "b.gz"]


def collection(client, **kwargs):
    return ObjectResources(client, "bucket", **kwargs)


def keys(resources):
    return [resource.key for resource in resources]


class CacheTests(unittest.TestCase):
    def test_completed_enumeration_is_replayed(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client)

        first = keys(resources)
        calls = len(client.calls)
        second = keys(resources)

        self.assertEqual(first, second)
        self.assertEqual(calls, len(client.calls))

    def test_cache_disabled_lists_every_time(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client, cache=False)

        list(resources)
        calls = len(client.calls)
        list(resources)

        self.assertEqual(2 * calls, len(client.calls))

    def test_partial_enumeration_is_not_cached(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client)

        next(iter(resources))
        self.assertEqual(KEYS[:2] + ["b.gz"], keys(resources))
        calls = len(client.calls)
        list(resources)

        self.assertEqual(calls, len(client.calls))
        self.assertEqual(4, calls)

    def test_settings_change_during_enumeration_discards_result(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client)

        iterator = iter(resources)
        next(iterator)
        resources.exclude("**/*.gz")
        rest = list(iterator)

        self.assertEqual(2, len(rest))
        self.assertEqual(["a/y.txt"], keys(resources))

    def test_changing_settings_resets_cache(self):
        client = FakeS3Client(versions=make_versions({"a": 2}))
        resources = collection(client)
        self.assertEqual(1, len(list(resources)))

        resources.precision = "version"
        self.assertIs(Precision.VERSION, resources.precision)
        self.assertEqual(2, len(list(resources)))

        calls = len(client.calls)
        resources.precision = Precision.VERSION
        list(resources)
        self.assertEqual(calls, len(client.calls))


class PatternTests(unittest.TestCase):
    def test_include_splits_patterns(self):
        resources = collection(FakeS3Client(objects=make_objects(KEYS))).include("a/*, *.gz")

        self.assertEqual(["a/*", "*.gz"], resources.includes)
        self.assertEqual(KEYS, keys(resources))

    def test_patterns_from_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            include_file = Path(tmp) / "include.txt"
            include_file.write_text("# everything under a\na/*\n", encoding="utf-8")
            exclude_file = Path(tmp) / "exclude.txt"
            exclude_file.write_text("**/*.txt\n", encoding="utf-8")

            resources = collection(FakeS3Client(objects=make_objects(KEYS)))
            resources.include_from_file(include_file).exclude_from_file(exclude_file)

        self.assertEqual(["a/x.gz"], keys(resources))
        self.assertTrue(resources.has_patterns())

    def test_create_finder_uses_current_settings(self):
        resources = collection(FakeS3Client(), includes="a/*", page_size=10, case_sensitive=False)
        created = resources.create_finder()

        self.assertIsInstance(created, S3Finder)
        self.assertFalse(created.case_sensitive)
        self.assertIsNone(created.root_prefix)


class SelectorTests(unittest.TestCase):
    def test_selectors_apply_to_fresh_and_cached_enumerations(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        selector = AttributeSelector("key", "**/*.gz", match_as=MatchAs.GLOB)
        resources = collection(client, selectors=[selector])

        self.assertEqual(["a/x.gz", "b.gz"], keys(resources))
        calls = len(client.calls)
        self.assertEqual(["a/x.gz", "b.gz"], keys(resources))
        self.assertEqual(calls, len(client.calls))

    def test_any_selector_may_match(self):
        resources = collection(FakeS3Client(objects=make_objects(KEYS)))
        resources.add_selector(AttributeSelector("key", "b.gz"))
        resources.add_selector(AttributeSelector("key", "a/y.txt"))
        resources.add_selector(None)

        self.assertEqual(["a/y.txt", "b.gz"], keys(resources))
        self.assertEqual(2, len(resources.selectors))

    def test_latest_versions_only(self):
        client = FakeS3Client(versions=make_versions({"a": 3, "b": 1}, delete_markers={"b"}))
        resources = collection(client, precision=Precision.VERSION, selectors=[FlagSelector("latest")])

        self.assertEqual(["a@a-v2", "b@b-dm"], [resource.name for resource in resources])


class SizeTests(unittest.TestCase):
    def test_plain_collection_uses_quick_count(self):
        client = FakeS3Client(objects=make_objects(KEYS))

        self.assertEqual(3, collection(client).size())
        self.assertEqual([("list_objects_v2", {"Bucket": "bucket"})], client.calls)

    def test_size_with_patterns_enumerates(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        self.assertEqual(2, collection(client, includes=["**/*.gz"]).size())

    def test_size_of_cached_collection_needs_no_listing(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client)
        list(resources)
        calls = len(client.calls)

        self.assertEqual(3, resources.size())
        self.assertEqual(calls, len(client.calls))

    def test_size_of_versions(self):
        client = FakeS3Client(versions=make_versions({"a": 3, "b": 1}, delete_markers={"b"}))
        self.assertEqual(5, collection(client, precision="version").size())

    def test_size_with_selectors(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        resources = collection(client, selectors=[AttributeSelector("key", "b.gz")])
        list(resources)

        self.assertEqual(1, resources.size())


class EnumerateResourcesTests(unittest.TestCase):
    def test_returns_lazy_finder(self):
        client = FakeS3Client(objects=make_objects(KEYS))
        found = enumerate_resources(client, "bucket", includes=["a/*"])

        self.assertEqual([], client.calls)
        self.assertEqual(["a/x.gz", "a/y.txt"], keys(found))


if __name__ == "__main__":
    unittest.main()
