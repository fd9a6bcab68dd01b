# -*- coding: utf-8 -*-
import json
import logging
import uuid
from collections import ChainMap
from concurrent.futures import Future
from unittest.mock import patch

import requests
import responses
from urllib.parse import parse_qs
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpResponse
from django.test import SimpleTestCase, override_settings
from django.test.client import RequestFactory

from . import dispatcher
from .backends.direct import DirectTrackingBackend
from .backends.threaded import ThreadPoolTrackingBackend, get_default_backend
from .config import TrackerConfig, load_config
from .errors import RemoteError, TransportError, ValidationError
from .hits import (CustomHit, Event, ExceptionHit, HitType, Item, Pageview, Refund, Screenview,
                   Social, Timing, Transaction)
from .middleware import GoogleAnalyticsApiTrackingMiddleware, _log_failure
from .tracker import Tracker
from .transport import logger as transport_logger
from .utils import COOKIE_NAME, get_page_title, is_valid_client_id

COLLECT_URL = "https://www.google-analytics.com/collect"
DEBUG_URL = "https://www.google-analytics.com/debug/collect"
GIF = b"GIF89a\x01\x00\x01\x00\x00\xff\x00,"


def sent_params(call_index=0):
    body = responses.calls[call_index].request.body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    return {key: values[0] for key, values in parse_qs(body).items()}


def add_pixel(url=COLLECT_URL, status=200):
    responses.add(responses.POST, url, body=GIF, status=status, content_type="image/gif")


def add_validation(valid, url=DEBUG_URL):
    body = {"hitParsingResult": [{"valid": valid, "parserMessage": [], "hit": "/debug/collect"}]}
    responses.add(responses.POST, url, json=body, status=200)
    return body


class HitParamsTestCase(SimpleTestCase):

    def test_pageview_params(self):
        self.assertEqual(
            Pageview("example.com", "/home", "Home Page").to_params(),
            {"dh": "example.com", "dp": "/home", "dt": "Home Page"})

    def test_event_optional_fields_only_when_truthy(self):
        self.assertEqual(Event("video", "play").to_params(), {"ec": "video", "ea": "play"})
        self.assertEqual(Event("video", "play", label="", value=0).to_params(),
                         {"ec": "video", "ea": "play"})
        self.assertEqual(Event("video", "play", label="intro", value=3).to_params(),
                         {"ec": "video", "ea": "play", "el": "intro", "ev": 3})

    def test_transaction_sparse_fields(self):
        self.assertEqual(Transaction("T-1").to_params(), {"ti": "T-1"})
        params = Transaction("T-1", affiliation="shop", revenue=12.5, shipping=0, tax=None,
                             currency="EUR").to_params()
        self.assertEqual(params, {"ti": "T-1", "ta": "shop", "tr": 12.5, "cu": "EUR"})

    def test_item_sparse_fields(self):
        self.assertEqual(Item("T-1", "shoe").to_params(), {"ti": "T-1", "in": "shoe"})
        params = Item("T-1", "shoe", price=30, qty=2, sku="SH-1", variation="red",
                      currency="USD").to_params()
        self.assertEqual(params, {"ti": "T-1", "in": "shoe", "ip": 30, "iq": 2,
                                  "ic": "SH-1", "iv": "red", "cu": "USD"})

    def test_timing_sparse_fields(self):
        self.assertEqual(Timing("load", "dom", 120).to_params(),
                         {"utc": "load", "utv": "dom", "utt": 120})
        params = Timing("load", "dom", 120, label="home", dns=3, page_download=0,
                        redirect=4, tcp_connect=5, server_response=6).to_params()
        self.assertEqual(params, {"utc": "load", "utv": "dom", "utt": 120, "url": "home",
                                  "dns": 3, "rrt": 4, "tcp": 5, "srt": 6})

    def test_refund_always_sends_defaults(self):
        refund = Refund("T-1")
        self.assertEqual(refund.hit_type, HitType.EVENT)
        self.assertEqual(refund.to_params(), {"ec": "Ecommerce", "ea": "Refund", "ni": 1,
                                              "ti": "T-1", "pa": "refund"})

    def test_item_falsy_optional_fields_are_dropped(self):
        params = Item("T-1", "shoe", price=0, qty=0, sku="", variation=None,
                      currency="").to_params()
        self.assertEqual(params, {"ti": "T-1", "in": "shoe"})

    def test_screenview_params(self):
        hit = Screenview("app", "1.0", "com.app", "store", "Home")
        self.assertEqual(hit.hit_type, HitType.SCREENVIEW)
        self.assertEqual(hit.to_params(), {"an": "app", "av": "1.0", "aid": "com.app",
                                           "aiid": "store", "cd": "Home"})

    def test_social_params(self):
        hit = Social("like", "facebook", "/home")
        self.assertEqual(hit.hit_type, HitType.SOCIAL)
        self.assertEqual(hit.to_params(), {"sa": "like", "sn": "facebook", "st": "/home"})

    def test_exception_params_keep_required_fields(self):
        hit = ExceptionHit("IOError", 0)
        self.assertEqual(hit.hit_type, HitType.EXCEPTION)
        self.assertEqual(hit.to_params(), {"exd": "IOError", "exf": 0})

    def test_custom_hit_accepts_hit_type_values(self):
        hit = CustomHit("social", {"sa": "like"})
        self.assertIs(hit.hit_type, HitType.SOCIAL)
        with self.assertRaises(ValueError):
            CustomHit("unknown")


@override_settings(GA_API_TRACKING={"tracking_id": "UA-12345-1"})
class TrackerTestCase(SimpleTestCase):

    def setUp(self):
        self.tracker = Tracker("UA-12345-1", backend=DirectTrackingBackend())

    @responses.activate
    def test_pageview_payload(self):
        add_pixel()
        result = self.tracker.pageview("example.com", "/home", "Home Page", "abc-123").result()

        self.assertTrue(result.ok)
        self.assertEqual(result.as_dict(), {"clientID": "abc-123"})
        self.assertEqual(responses.calls[0].request.url, COLLECT_URL)
        self.assertEqual(sent_params(), {
            "v": "1", "tid": "UA-12345-1", "cid": "abc-123", "t": "pageview",
            "dh": "example.com", "dp": "/home", "dt": "Home Page"})

    @responses.activate
    def test_generated_client_ids_are_fresh_uuid4(self):
        add_pixel()
        first = self.tracker.event("video", "play").result().unwrap()
        second = self.tracker.event("video", "play").result().unwrap()

        self.assertNotEqual(first, second)
        self.assertEqual(uuid.UUID(first).version, 4)
        self.assertEqual(sent_params(0)["cid"], first)
        self.assertEqual(sent_params(1)["cid"], second)

    @responses.activate
    def test_each_hit_method_sends_its_hit_type(self):
        add_pixel()
        self.tracker.event("video", "play", label="intro", client_id="c")
        self.tracker.screen("app", "1.0", "com.app", "store", "Home", "c")
        self.tracker.transaction("T-1", revenue=10, client_id="c")
        self.tracker.social("like", "facebook", "/home", "c")
        self.tracker.exception("IOError", True, "c")
        self.tracker.refund("T-1", client_id="c")
        self.tracker.item("T-1", "shoe", qty=1, client_id="c")
        self.tracker.timing_trk("load", "dom", 120, dns=0, client_id="c")

        hit_types = [sent_params(i)["t"] for i in range(len(responses.calls))]
        self.assertEqual(hit_types, ["event", "screenview", "transaction", "social",
                                     "exception", "event", "item", "timing"])
        self.assertEqual(sent_params(1)["cd"], "Home")
        self.assertEqual(sent_params(4)["exf"], "1")
        self.assertEqual(sent_params(5)["pa"], "refund")
        self.assertNotIn("dns", sent_params(7))

    @responses.activate
    def test_send_params_dispatches_prebuilt_params(self):
        add_pixel()
        self.tracker.send_params("event", {"ec": "cat", "ea": "act"}, "c").result()
        self.assertEqual(sent_params()["t"], "event")
        self.assertEqual(sent_params()["ec"], "cat")

    @responses.activate
    def test_debug_url_only_in_debug_mode(self):
        add_pixel()
        add_validation(True)
        self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.tracker.debug = True
        self.tracker.pageview("example.com", "/", "Home", "c").result()

        self.assertEqual(responses.calls[0].request.url, COLLECT_URL)
        self.assertEqual(responses.calls[1].request.url, DEBUG_URL)

    @responses.activate
    def test_user_agent_header_only_when_configured(self):
        add_pixel()
        self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.tracker.user_agent = "my-agent/1.0"
        self.tracker.pageview("example.com", "/", "Home", "c").result()

        self.assertNotEqual(responses.calls[0].request.headers.get("User-Agent"), "my-agent/1.0")
        self.assertEqual(responses.calls[1].request.headers["User-Agent"], "my-agent/1.0")

    @responses.activate
    def test_debug_valid_hit_resolves_with_client_id(self):
        add_validation(True)
        self.tracker.debug = True
        result = self.tracker.pageview("example.com", "/", "Home", "abc-123").result()
        self.assertEqual(result.unwrap(), "abc-123")

    @responses.activate
    def test_debug_invalid_hit_fails_with_parsed_body(self):
        body = add_validation(False)
        self.tracker.debug = True
        result = self.tracker.pageview("example.com", "/", "Home", "abc-123").result()

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(result.error.body, body)
        with self.assertRaises(ValidationError):
            result.unwrap()

    @responses.activate
    def test_debug_response_without_parsing_result_is_remote_error(self):
        responses.add(responses.POST, DEBUG_URL, json={"unexpected": True}, status=200)
        self.tracker.debug = True
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIsInstance(result.error, RemoteError)
        self.assertEqual(result.error.body, {"unexpected": True})

    @responses.activate
    def test_server_error_fails_with_parsed_body_in_both_modes(self):
        error = {"error": {"code": 500, "message": "backend error"}}
        responses.add(responses.POST, COLLECT_URL, json=error, status=500)
        responses.add(responses.POST, DEBUG_URL, json=error, status=500)

        normal = self.tracker.pageview("example.com", "/", "Home", "c").result()
        debug = self.tracker.replace(debug=True).pageview("example.com", "/", "Home", "c").result()

        for result in (normal, debug):
            self.assertIsInstance(result.error, RemoteError)
            self.assertEqual(result.error.body, error)
            self.assertEqual(result.error.status_code, 500)

    @responses.activate
    def test_error_pixel_fails_with_raw_body(self):
        responses.add(responses.POST, COLLECT_URL, body="bad gif", status=400,
                      content_type="image/gif")
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIsInstance(result.error, RemoteError)
        self.assertEqual(result.error.body, "bad gif")

    @responses.activate
    def test_unparsable_body_fails_with_raw_text(self):
        responses.add(responses.POST, COLLECT_URL, body="<html>oops</html>", status=502,
                      content_type="text/html")
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIsInstance(result.error, RemoteError)
        self.assertEqual(result.error.body, "<html>oops</html>")

    @responses.activate
    def test_plain_text_success_is_ok_outside_debug_mode(self):
        responses.add(responses.POST, COLLECT_URL, body="ok", status=200,
                      content_type="text/plain")
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertTrue(result.ok)
        self.assertEqual(result.unwrap(), "c")

    @responses.activate
    def test_plain_text_success_is_remote_error_in_debug_mode(self):
        responses.add(responses.POST, DEBUG_URL, body="ok", status=200,
                      content_type="text/plain")
        self.tracker.debug = True
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIsInstance(result.error, RemoteError)
        self.assertEqual(result.error.body, "ok")

    @responses.activate
    def test_pixel_success_skips_body_parsing(self):
        add_pixel()
        with patch("requests.models.Response.json") as mock_json:
            result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertTrue(result.ok)
        mock_json.assert_not_called()

    @responses.activate
    def test_connection_error_is_transport_error(self):
        cause = requests.exceptions.ConnectionError("connection refused")
        responses.add(responses.POST, COLLECT_URL, body=cause)
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()

        self.assertIsInstance(result.error, TransportError)
        self.assertIs(result.error.cause, cause)
        self.assertEqual(result.client_id, "c")

    def test_setters_swap_immutable_config(self):
        before = self.tracker.config
        self.tracker.base_url = "http://localhost:8080"
        self.tracker.debug_url = "/validate"
        self.tracker.collect_url = "/c"
        self.tracker.batch_url = "/b"
        self.tracker.tracking_id = "UA-1-2"
        self.tracker.version = 2

        self.assertEqual(before.base_url, "https://www.google-analytics.com")
        self.assertEqual(self.tracker.config.batch_path, "/b")
        self.assertEqual(self.tracker.config.collect_url, "http://localhost:8080/c")
        self.assertEqual(self.tracker.replace(debug=True).config.collect_url,
                         "http://localhost:8080/validate/c")
        self.assertEqual((self.tracker.tracking_id, self.tracker.version), ("UA-1-2", 2))

    def test_requires_tracking_id(self):
        with self.assertRaises(ValueError):
            Tracker("")

    def test_from_settings(self):
        tracker = Tracker.from_settings(backend=DirectTrackingBackend())
        self.assertEqual(tracker.tracking_id, "UA-12345-1")
        self.assertFalse(tracker.debug)
        self.assertEqual(tracker.user_agent, "")

    def test_sending_tracking_request_logs(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.POST, COLLECT_URL, body=GIF, status=200, content_type="image/gif")
            with self.assertLogs(transport_logger, logging.DEBUG) as cm:
                self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIn("Google Analytics tracking sent successfully", cm.output[0])

    @responses.activate
    def test_sending_tracking_request_logs_failure_as_warning(self):
        responses.add(responses.POST, COLLECT_URL, json={}, status=400)
        with self.assertLogs(transport_logger, logging.WARNING) as cm:
            self.tracker.pageview("example.com", "/", "Home", "c").result()
        self.assertIn("Google Analytics tracking failed", cm.output[0])
        self.assertIn("Bad Request", cm.output[0])

    @patch("ga_api_tracking.transport.logger")
    @patch("ga_api_tracking.transport.requests.post")
    def test_send_logs_timeout(self, mock_post, mock_logger):
        mock_post.side_effect = requests.exceptions.Timeout
        result = self.tracker.pageview("example.com", "/", "Home", "c").result()
        mock_logger.warning.assert_any_call("tracking request timed out: %s", COLLECT_URL)
        self.assertIsInstance(result.error, TransportError)
        self.assertEqual(mock_post.call_args[1]["timeout"], 8)


class ThreadPoolBackendTestCase(SimpleTestCase):

    def setUp(self):
        self.backend = ThreadPoolTrackingBackend(max_workers=2)
        self.tracker = Tracker("UA-12345-1", backend=self.backend)

    def tearDown(self):
        self.backend.shutdown()

    @responses.activate
    def test_concurrent_hits_resolve_independently(self):
        add_pixel()
        futures = [self.tracker.pageview("example.com", "/%d" % i, "Page") for i in range(5)]
        results = [future.result(timeout=5) for future in futures]

        self.assertTrue(all(isinstance(future, Future) for future in futures))
        self.assertTrue(all(result.ok for result in results))
        self.assertEqual(len({result.client_id for result in results}), 5)
        self.assertEqual(len(responses.calls), 5)

    def test_trackers_without_backend_share_the_default_pool(self):
        first = Tracker("UA-12345-1")
        second = Tracker("UA-12345-2")
        self.assertIs(first.backend, second.backend)
        self.assertIs(first.backend, get_default_backend())
        self.assertIsInstance(first.backend, ThreadPoolTrackingBackend)

    def test_rejects_non_numeric_workers(self):
        with self.assertRaises(ValueError):
            ThreadPoolTrackingBackend(max_workers="many")


class SettingsTestCase(SimpleTestCase):

    def tearDown(self):
        dispatcher.reset()

    def test_load_config(self):
        config = load_config()
        self.assertEqual(config.tracking_id, "UA-12345-1")
        self.assertEqual(config.timeout, 2.0)
        self.assertEqual(config.collect_url, COLLECT_URL)

    def test_config_from_dict(self):
        config = TrackerConfig.from_dict({"tracking_id": "UA-9-9", "debug": True, "version": 1,
                                          "user_agent": "agent", "base_url": "http://ga"})
        self.assertEqual(config.collect_url, "http://ga/debug/collect")
        self.assertEqual(config.user_agent, "agent")

    @override_settings(GA_API_TRACKING={})
    def test_missing_tracking_id(self):
        with self.assertRaises(ImproperlyConfigured) as cm:
            load_config()
        self.assertIn("configuration incomplete", str(cm.exception))

    @override_settings(GA_API_TRACKING=ChainMap({"timeout": "non-numeric-value"},
                                                settings.GA_API_TRACKING))
    def test_non_numeric_timeout(self):
        with self.assertRaises(ImproperlyConfigured):
            load_config()

    def test_backend_from_settings_is_singleton(self):
        backend = dispatcher.get_backend()
        self.assertIsInstance(backend, DirectTrackingBackend)
        self.assertIs(dispatcher.get_backend(), backend)
        self.assertIs(dispatcher.get_tracker().backend, backend)

    @override_settings(GA_API_TRACKING={"tracking_id": "UA-1-1", "max_workers": 3})
    def test_default_backend_is_thread_pool(self):
        backend = dispatcher.get_backend()
        self.assertIsInstance(backend, ThreadPoolTrackingBackend)
        self.assertEqual(backend.max_workers, 3)


class MiddlewareTestCase(SimpleTestCase):

    def setUp(self):
        dispatcher.reset()

    def tearDown(self):
        dispatcher.reset()

    def make_request(self, url, **headers):
        return RequestFactory().get(url, **headers)

    @responses.activate
    def test_middleware_sends_pageview_and_sets_cookie(self):
        add_pixel()
        html = "<html><head><title>ما-مدى-جاهزيتك-للإنترنت</title></head></html>"
        middleware = GoogleAnalyticsApiTrackingMiddleware(lambda r: HttpResponse(html))
        response = middleware(self.make_request("/sections/deep-soul/"))
        client_id = response.cookies.get(COOKIE_NAME).value

        self.assertEqual(len(responses.calls), 1)
        params = sent_params()
        self.assertEqual(params["t"], "pageview")
        self.assertEqual(params["dh"], "testserver")
        self.assertEqual(params["dp"], "/sections/deep-soul/")
        self.assertEqual(params["dt"], "ما-مدى-جاهزيتك-للإنترنت")
        self.assertEqual(params["tid"], "UA-12345-1")
        self.assertEqual(params["cid"], client_id)
        self.assertTrue(is_valid_client_id(client_id))

    @responses.activate
    def test_middleware_reuses_cookie_client_id(self):
        add_pixel()
        client_id = str(uuid.uuid4())
        request = self.make_request("/somewhere/")
        request.COOKIES[COOKIE_NAME] = client_id
        middleware = GoogleAnalyticsApiTrackingMiddleware(lambda r: HttpResponse())
        response = middleware(request)

        self.assertEqual(sent_params()["cid"], client_id)
        self.assertEqual(response.cookies.get(COOKIE_NAME).value, client_id)

    @responses.activate
    def test_middleware_no_title(self):
        add_pixel()
        middleware = GoogleAnalyticsApiTrackingMiddleware(
            lambda r: HttpResponse(json.dumps({}), content_type="application/json"))
        middleware(self.make_request("/api/"))
        self.assertNotIn("dt", sent_params())

    @override_settings(GA_API_TRACKING=ChainMap({"ignore_paths": ["/ignore-this"]},
                                                settings.GA_API_TRACKING))
    @responses.activate
    def test_middleware_ignore_path(self):
        middleware = GoogleAnalyticsApiTrackingMiddleware(lambda r: HttpResponse())
        middleware(self.make_request("/ignore-this/somewhere/"))
        self.assertEqual(len(responses.calls), 0)

    @override_settings(GA_API_TRACKING={})
    def test_middleware_no_tracking_id_set(self):
        middleware = GoogleAnalyticsApiTrackingMiddleware(lambda r: HttpResponse())
        with self.assertRaises(ImproperlyConfigured):
            middleware(self.make_request("/home/"))

    @responses.activate
    def test_middleware_logs_failed_hits(self):
        responses.add(responses.POST, COLLECT_URL, json={"error": "nope"}, status=500)
        middleware = GoogleAnalyticsApiTrackingMiddleware(lambda r: HttpResponse())
        with self.assertLogs("ga_api_tracking.middleware", logging.WARNING) as cm:
            middleware(self.make_request("/somewhere/"))
        self.assertIn("pageview hit for client", cm.output[0])

    def test_cancelled_hit_is_logged(self):
        future = Future()
        future.cancel()
        with self.assertLogs("ga_api_tracking.middleware", logging.WARNING) as cm:
            _log_failure(future)
        self.assertIn("cancelled", cm.output[0])

    def test_page_title_of_non_html_response(self):
        self.assertIsNone(get_page_title(HttpResponse(b"\x00", content_type="image/png")))
        self.assertEqual(
            get_page_title(HttpResponse("<html><head><title>t</title></head></html>")), "t")
