from __future__ import annotations

import threading
import unittest

from redirect_trace.models import TraceOptions
from redirect_trace.tracer import (
    CANCELLED_ERROR,
    INVALID_URL_ERROR,
    LOOP_ERROR,
    RedirectTracer,
)
from redirect_trace.transport import FetchError, RawResponse


class FakeFetch:
    """Offline transport: url -> RawResponse (or an exception to raise)."""

    def __init__(self, routes):
        self.routes = routes
        self.calls: list[tuple[str, str, int]] = []

    def __call__(self, url, *, user_agent, timeout_ms):
        self.calls.append((url, user_agent, timeout_ms))
        route = self.routes.get(url)
        if route is None:
            raise FetchError(f"getaddrinfo ENOTFOUND {url}")
        if isinstance(route, Exception):
            raise route
        return route


def ok(headers=None):
    return RawResponse(status=200, reason="OK", headers=headers or {"content-type": "text/html"})


def redirect(location, status=301, reason="Moved Permanently"):
    return RawResponse(status=status, reason=reason, headers={"location": location})


class TestRedirectTracer(unittest.TestCase):
    def test_no_redirect(self):
        fetch = FakeFetch({"https://a.example/": ok()})
        result = RedirectTracer(fetch).trace("https://a.example/")

        self.assertEqual(len(result.hops), 1)
        self.assertEqual(result.redirect_count, 0)
        self.assertIsNone(result.error)
        self.assertEqual(result.final_url, result.initial_url)
        self.assertEqual(result.hops[0].status_code, 200)
        self.assertEqual(result.hops[0].status_text, "OK")
        self.assertIsNone(result.hops[0].location)

    def test_single_redirect(self):
        fetch = FakeFetch(
            {
                "https://a.example/": redirect("https://b.example/"),
                "https://b.example/": ok(),
            }
        )
        result = RedirectTracer(fetch).trace("https://a.example/")

        self.assertEqual(len(result.hops), 2)
        self.assertEqual(result.redirect_count, 1)
        self.assertEqual(result.final_url, "https://b.example/")
        self.assertIsNone(result.error)
        self.assertEqual(result.hops[0].location, "https://b.example/")

    def test_relative_location_is_resolved(self):
        fetch = FakeFetch(
            {
                "https://a.example/x/y": redirect("../z", status=302, reason="Found"),
                "https://a.example/z": ok(),
            }
        )
        result = RedirectTracer(fetch).trace("https://a.example/x/y")

        self.assertEqual([h.url for h in result.hops], ["https://a.example/x/y", "https://a.example/z"])
        # The raw header is kept as sent.
        self.assertEqual(result.hops[0].location, "../z")

    def test_protocol_relative_location(self):
        fetch = FakeFetch(
            {
                "http://a.example/": redirect("//b.example/landing"),
                "http://b.example/landing": ok(),
            }
        )
        result = RedirectTracer(fetch).trace("http://a.example/")
        self.assertEqual(result.final_url, "http://b.example/landing")

    def test_loop_detection(self):
        a, b = "https://a.example/", "https://b.example/"
        fetch = FakeFetch({a: redirect(b), b: redirect(a)})
        result = RedirectTracer(fetch).trace(a)

        self.assertEqual([h.url for h in result.hops], [a, b])
        self.assertEqual(result.error, LOOP_ERROR)
        self.assertEqual(result.redirect_count, 1)
        self.assertEqual(result.final_url, b)
        # A is not requested a second time.
        self.assertEqual([c[0] for c in fetch.calls], [a, b])

    def test_self_redirect_is_a_loop(self):
        a = "https://a.example/"
        result = RedirectTracer(FakeFetch({a: redirect(a)})).trace(a)
        self.assertEqual(len(result.hops), 1)
        self.assertEqual(result.redirect_count, 0)
        self.assertEqual(result.error, LOOP_ERROR)

    def test_redirect_limit(self):
        routes = {f"https://a.example/{i}": redirect(f"/{i + 1}") for i in range(10)}
        result = RedirectTracer(FakeFetch(routes)).trace(
            "https://a.example/0", TraceOptions(max_redirects=3)
        )

        self.assertEqual(result.redirect_count, 3)
        self.assertEqual(len(result.hops), 4)
        self.assertIn("(3)", result.error)
        self.assertEqual(result.error, "Maximum number of redirects (3) reached")
        self.assertEqual(result.final_url, "https://a.example/3")

    def test_limit_not_flagged_when_chain_ends_exactly_at_limit(self):
        routes = {
            "https://a.example/0": redirect("/1"),
            "https://a.example/1": redirect("/2"),
            "https://a.example/2": ok(),
        }
        result = RedirectTracer(FakeFetch(routes)).trace(
            "https://a.example/0", TraceOptions(max_redirects=2)
        )
        self.assertIsNone(result.error)
        self.assertEqual(result.redirect_count, 2)

    def test_follow_redirects_false(self):
        fetch = FakeFetch(
            {
                "https://a.example/": redirect("https://b.example/", status=302, reason="Found"),
                "https://b.example/": ok(),
            }
        )
        result = RedirectTracer(fetch).trace(
            "https://a.example/", TraceOptions(follow_redirects=False)
        )

        self.assertEqual(len(result.hops), 1)
        self.assertEqual(result.hops[0].status_code, 302)
        self.assertEqual(result.hops[0].location, "https://b.example/")
        self.assertEqual(result.redirect_count, 0)
        self.assertIsNone(result.error)
        self.assertEqual(result.final_url, "https://a.example/")
        self.assertEqual(len(fetch.calls), 1)

    def test_terminal_non_error_statuses(self):
        cases = [
            RawResponse(status=404, reason="Not Found", headers={}),
            RawResponse(status=503, reason="Service Unavailable", headers={"location": "/x"}),
            RawResponse(status=304, reason="Not Modified", headers={}),
        ]
        for resp in cases:
            with self.subTest(status=resp.status):
                result = RedirectTracer(FakeFetch({"https://a.example/": resp})).trace(
                    "https://a.example/"
                )
                self.assertIsNone(result.error)
                self.assertEqual(len(result.hops), 1)
                self.assertEqual(result.hops[0].status_code, resp.status)

    def test_invalid_url(self):
        fetch = FakeFetch({})
        result = RedirectTracer(fetch).trace("example.com")

        self.assertEqual(result.error, INVALID_URL_ERROR)
        self.assertEqual(result.hops, ())
        self.assertEqual(result.final_url, "example.com")
        self.assertEqual(fetch.calls, [])

    def test_network_error_on_first_hop(self):
        result = RedirectTracer(FakeFetch({})).trace("https://nowhere.invalid/")

        self.assertIn("ENOTFOUND", result.error)
        self.assertEqual(result.hops, ())
        self.assertEqual(result.final_url, "https://nowhere.invalid/")
        self.assertEqual(result.redirect_count, 0)

    def test_network_error_mid_chain_keeps_explicit_count(self):
        fetch = FakeFetch(
            {
                "https://a.example/": redirect("https://b.example/"),
                "https://b.example/": redirect("https://c.example/"),
                "https://c.example/": FetchError("timeout of 10000ms exceeded"),
            }
        )
        result = RedirectTracer(fetch).trace("https://a.example/")

        self.assertEqual(result.error, "timeout of 10000ms exceeded")
        self.assertEqual(len(result.hops), 2)
        self.assertEqual(result.redirect_count, 2)
        self.assertEqual(result.final_url, "https://b.example/")

    def test_fault_with_partial_response_appends_hop(self):
        partial = RawResponse(status=502, reason="Bad Gateway", headers={"server": "edge"})
        fetch = FakeFetch(
            {
                "https://a.example/": redirect("https://b.example/"),
                "https://b.example/": FetchError("socket hang up", response=partial),
            }
        )
        result = RedirectTracer(fetch).trace("https://a.example/")

        self.assertEqual(result.error, "socket hang up")
        self.assertEqual(len(result.hops), 2)
        self.assertEqual(result.hops[1].status_code, 502)
        self.assertEqual(result.final_url, "https://b.example/")
        self.assertEqual(result.redirect_count, 1)

    def test_options_are_sent_on_every_hop(self):
        fetch = FakeFetch(
            {
                "https://a.example/": redirect("https://b.example/"),
                "https://b.example/": ok(),
            }
        )
        RedirectTracer(fetch).trace(
            "https://a.example/", TraceOptions(user_agent="tracer-test/1.0", timeout_ms=1500)
        )
        self.assertEqual(
            fetch.calls,
            [("https://a.example/", "tracer-test/1.0", 1500), ("https://b.example/", "tracer-test/1.0", 1500)],
        )

    def test_timing_is_recorded(self):
        result = RedirectTracer(FakeFetch({"https://a.example/": ok()})).trace("https://a.example/")
        timing = result.hops[0].timing

        self.assertIsNotNone(timing)
        self.assertGreaterEqual(timing.end, timing.start)
        self.assertEqual(timing.duration, timing.end - timing.start)
        self.assertIsNotNone(result.total_time_ms)
        self.assertGreaterEqual(result.total_time_ms, 0)

    def test_cancel_before_next_hop(self):
        cancel = threading.Event()

        class CancellingFetch(FakeFetch):
            def __call__(self, url, *, user_agent, timeout_ms):
                resp = super().__call__(url, user_agent=user_agent, timeout_ms=timeout_ms)
                cancel.set()
                return resp

        fetch = CancellingFetch(
            {
                "https://a.example/": redirect("https://b.example/"),
                "https://b.example/": ok(),
            }
        )
        result = RedirectTracer(fetch).trace("https://a.example/", cancel=cancel)

        self.assertEqual(result.error, CANCELLED_ERROR)
        self.assertEqual(len(result.hops), 1)
        self.assertEqual(result.redirect_count, 1)

    def test_non_http_redirect_targets_are_refused(self):
        for location, scheme in [
            ("file:///etc/hostname", "file"),
            ("data:,hello", "data"),
            ("ftp://files.example/pub/x", "ftp"),
        ]:
            with self.subTest(location=location):
                fetch = FakeFetch({"https://a.example/": redirect(location, status=302, reason="Found")})
                result = RedirectTracer(fetch).trace("https://a.example/")

                self.assertEqual(result.error, f"Unsupported protocol {scheme}:")
                self.assertEqual(len(result.hops), 1)
                self.assertEqual(result.hops[0].location, location)
                self.assertEqual(result.redirect_count, 0)
                self.assertEqual(result.final_url, "https://a.example/")
                self.assertEqual([c[0] for c in fetch.calls], ["https://a.example/"])

    def test_malformed_location_keeps_received_hop(self):
        fetch = FakeFetch({"https://a.example/": redirect("http://[bad/", status=302, reason="Found")})
        result = RedirectTracer(fetch).trace("https://a.example/")

        self.assertEqual(len(result.hops), 1)
        self.assertEqual(result.hops[0].status_code, 302)
        self.assertIn("Invalid redirect location", result.error)
        self.assertEqual(result.final_url, "https://a.example/")
        self.assertEqual(result.redirect_count, 0)

    def test_loop_closing_at_limit_reports_loop(self):
        a, b = "https://a.example/", "https://b.example/"
        result = RedirectTracer(FakeFetch({a: redirect(b), b: redirect(a)})).trace(
            a, TraceOptions(max_redirects=1)
        )

        self.assertEqual(result.error, LOOP_ERROR)
        self.assertEqual([h.url for h in result.hops], [a, b])
        self.assertEqual(result.redirect_count, 1)

    def test_idempotent_for_static_url(self):
        headers = {"content-type": "text/plain", "etag": '"abc"'}
        tracer = RedirectTracer(FakeFetch({"https://a.example/": ok(headers)}))

        first = tracer.trace("https://a.example/")
        second = tracer.trace("https://a.example/")

        def shape(r):
            return [(h.url, h.status_code, h.headers) for h in r.hops]

        self.assertEqual(shape(first), shape(second))


if __name__ == "__main__":
    unittest.main()
