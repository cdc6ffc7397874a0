import logging
import unittest

from fakes import error_body, listing_page

from s3_rest.documents import (
    decode_error,
    decode_string_to_sign,
    parse_error_document,
    parse_list_all_my_buckets,
    parse_list_bucket_result,
    parse_location_constraint,
)
from s3_rest.errors import ResponseParseError
from s3_rest.models import ErrorDocument, Item


class ErrorDecoderTests(unittest.TestCase):
    def test_decodes_all_error_fields(self):
        body = error_body(
            "NoSuchBucket",
            "The specified bucket does not exist",
            RequestId="4442587FB7D0A2F9",
            Bucket="photos",
            Endpoint="ignored.example.com",
        ).encode()

        error = decode_error("ListBucket", 404, body, {"x-amz-request-id": "4442587FB7D0A2F9"})

        self.assertEqual("ListBucket", error.operation)
        self.assertEqual(404, error.status)
        self.assertEqual("NoSuchBucket", error.code)
        self.assertEqual("The specified bucket does not exist", error.message)
        self.assertEqual("4442587FB7D0A2F9", error.request_id)
        self.assertEqual("photos", error.bucket)
        self.assertEqual("", error.use_endpoint)
        self.assertEqual({"x-amz-request-id": "4442587FB7D0A2F9"}, error.headers)
        self.assertEqual(body, error.body)
        self.assertIn("<Error>", str(error))

    def test_temporary_redirect_exposes_endpoint(self):
        body = error_body("TemporaryRedirect", Endpoint="photos.eu.example.com").encode()

        error = decode_error("GetObject", 307, body)

        self.assertEqual("photos.eu.example.com", error.use_endpoint)

    def test_non_xml_body_still_yields_error(self):
        error = decode_error("PutObject", 502, b"<html>Bad Gateway</html>")

        self.assertEqual("", error.code)
        self.assertEqual("", error.message)
        self.assertEqual(b"<html>Bad Gateway</html>", error.body)
        self.assertEqual("s3.PutObject: status 502", str(error))

    def test_empty_body(self):
        self.assertEqual(ErrorDocument(), parse_error_document(b""))

    def test_signature_mismatch_logs_string_to_sign(self):
        body = error_body(
            "SignatureDoesNotMatch",
            StringToSignBytes="47 45 54 0a",
        ).encode()
        logger = logging.getLogger("tests.documents")

        with self.assertLogs(logger, level="DEBUG") as logs:
            error = decode_error("PutObject", 403, body, logger=logger)

        self.assertEqual("SignatureDoesNotMatch", error.code)
        self.assertIn("should be 4 bytes", logs.output[0])
        self.assertIn("4745540a", logs.output[0])

    def test_decode_string_to_sign(self):
        self.assertEqual(b"GET\n", decode_string_to_sign("47 45 54 0a"))
        self.assertEqual(b"", decode_string_to_sign("zz"))


class DocumentParsingTests(unittest.TestCase):
    def test_parses_bucket_list_without_namespace(self):
        body = (
            b"<ListAllMyBucketsResult><Buckets>"
            b"<Bucket><Name>a</Name><CreationDate>2015-01-01T00:00:00.000Z</CreationDate></Bucket>"
            b"</Buckets></ListAllMyBucketsResult>"
        )

        buckets = parse_list_all_my_buckets(body)

        self.assertEqual(["a"], [bucket.name for bucket in buckets])
        self.assertEqual("2015-01-01T00:00:00.000Z", buckets[0].creation_date)

    def test_bucket_without_name_is_a_parse_error(self):
        body = (
            b"<ListAllMyBucketsResult><Buckets>"
            b"<Bucket><CreationDate>2015-01-01T00:00:00.000Z</CreationDate></Bucket>"
            b"</Buckets></ListAllMyBucketsResult>"
        )

        with self.assertRaises(ResponseParseError):
            parse_list_all_my_buckets(body)

    def test_parses_listing_page(self):
        body = listing_page("photos", ["a", "b"], marker="a", max_keys=5, truncated=True).encode()

        page = parse_list_bucket_result(body)

        self.assertEqual("photos", page.name)
        self.assertEqual("a", page.marker)
        self.assertEqual(5, page.max_keys)
        self.assertTrue(page.is_truncated)
        self.assertEqual(
            (
                Item("a", "2015-01-02T03:04:05.000Z", 1),
                Item("b", "2015-01-02T03:04:05.000Z", 1),
            ),
            page.items,
        )

    def test_listing_page_rejects_wrong_document(self):
        with self.assertRaises(ResponseParseError):
            parse_list_bucket_result(b"<Error><Code>x</Code></Error>")

    def test_listing_page_rejects_bad_numbers(self):
        body = (
            b"<ListBucketResult><Name>p</Name><MaxKeys>many</MaxKeys>"
            b"<IsTruncated>false</IsTruncated></ListBucketResult>"
        )

        with self.assertRaises(ResponseParseError):
            parse_list_bucket_result(body)

    def test_location_constraint(self):
        self.assertEqual("us-west-2", parse_location_constraint(
            b"<LocationConstraint>us-west-2</LocationConstraint>"
        ))
        with self.assertRaises(ResponseParseError):
            parse_location_constraint(b"<Other/>")


if __name__ == "__main__":
    unittest.main()
