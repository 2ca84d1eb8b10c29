import unittest
from mocksy.core.logger import format_http_message, format_served
from mocksy.core.parser import HttpRequest, HttpResponse

class TestHttpLogFormat(unittest.TestCase):
    def test_request(self):
        req = HttpRequest(method="GET", path="/hello", query="a=1", version="1.1", headers={"Host": "loc"})
        text = format_http_message(req)
        self.assertEqual(text.splitlines()[0], "> GET /hello?a=1 HTTP/1.1")
        self.assertIn("> Host: loc", text)

    def test_response_long_body(self):
        res = HttpResponse(status_code=200, version="1.1", body=b"a" * 600)
        text = format_http_message(res)
        self.assertTrue(text.startswith("< HTTP/1.1 200"))
        self.assertIn("... (100 more bytes)", text)

    def test_binary_body(self):
        res = HttpResponse(status_code=200, version="1.1", body=b"\xff\xfe\x00")
        self.assertIn("[Binary: 3 bytes]", format_http_message(res))

    def test_served(self):
        req = HttpRequest(method="GET", path="/x", client_ip="1.2.3.4")
        line = format_served(req, None, 404, 12, 0.0015)
        self.assertEqual(line, '1.2.3.4 "GET /x" -> - 404 12b 1.5ms')

if __name__ == "__main__":
    unittest.main()
