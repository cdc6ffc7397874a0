import unittest

from s3_rest.errors import RequestBuildError
from s3_rest.urls import URLBuilder, validate_hostname


class URLBuilderTests(unittest.TestCase):
    def test_bucket_and_key_urls(self):
        urls = URLBuilder("s3.example.com")

        self.assertEqual("http://s3.example.com/", urls.service_url())
        self.assertEqual("http://s3.example.com/photos/", urls.bucket_url("photos"))
        self.assertEqual(
            "http://s3.example.com/photos/2015/summer/a.jpg",
            urls.key_url("photos", "2015/summer/a.jpg"),
        )

    def test_keys_are_percent_encoded(self):
        urls = URLBuilder("s3.example.com")

        self.assertEqual(
            "http://s3.example.com/photos/my%20file%3F.txt",
            urls.key_url("photos", "my file?.txt"),
        )

    def test_query_strings(self):
        urls = URLBuilder("s3.example.com:9000", secure=True)

        self.assertEqual(
            "https://s3.example.com:9000/photos/?marker=a%20b&max-keys=10",
            urls.bucket_url("photos", {"marker": "a b", "max-keys": 10}),
        )
        self.assertEqual(
            "https://other.example.com/photos/?location",
            urls.bucket_url("photos", "location", hostname="other.example.com"),
        )

    def test_default_hostname(self):
        self.assertEqual("localhost", URLBuilder().hostname)
        self.assertEqual("localhost", validate_hostname("  "))

    def test_accepts_ipv6_literal(self):
        self.assertEqual("http://[::1]:9000/", URLBuilder("[::1]:9000").service_url())

    def test_rejects_malformed_input(self):
        for hostname in ("http://s3.example.com", "bad host", "host/path", "host:port"):
            with self.subTest(hostname=hostname):
                with self.assertRaises(RequestBuildError):
                    URLBuilder(hostname)

        urls = URLBuilder("s3.example.com")
        with self.assertRaises(RequestBuildError):
            urls.bucket_url("")
        with self.assertRaises(RequestBuildError):
            urls.bucket_url("a/b")
        with self.assertRaises(RequestBuildError):
            urls.key_url("photos", "")


if __name__ == "__main__":
    unittest.main()
