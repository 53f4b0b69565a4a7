"""Tests for the request/response channel."""

import threading

import pytest

from framecompose.channel import ChannelError, ChannelTimeoutError, RequestChannel


def _request_in_thread(channel, message_type, payload, results, timeout=5):
    def _run():
        try:
            results.append(("ok", channel.request(message_type, payload, timeout=timeout)))
        except (ChannelError, ChannelTimeoutError) as exc:
            results.append((type(exc).__name__, str(exc)))

    worker = threading.Thread(target=_run)
    worker.start()
    return worker


class TestRequestChannel:
    def test_round_trip(self):
        channel = RequestChannel({"double": lambda payload: payload * 2})
        results = []
        worker = _request_in_thread(channel, "double", 21, results)
        channel.serve_pending(max_requests=1, block=5)
        worker.join(timeout=5)
        assert results == [("ok", 42)]

    def test_responses_match_their_requests(self):
        channel = RequestChannel()
        channel.register("echo", lambda payload: payload)
        results = []
        workers = [_request_in_thread(channel, "echo", n, results) for n in range(5)]
        served = 0
        while served < 5:
            served += channel.serve_pending(block=5)
        for worker in workers:
            worker.join(timeout=5)
        assert sorted(results) == [("ok", n) for n in range(5)]

    def test_handler_error_is_reported(self):
        def fail(payload):
            raise KeyError("selector")

        channel = RequestChannel({"fail": fail})
        results = []
        worker = _request_in_thread(channel, "fail", None, results)
        channel.serve_pending(max_requests=1, block=5)
        worker.join(timeout=5)
        assert results[0][0] == "ChannelError"
        assert "KeyError" in results[0][1]

    def test_unknown_type_is_reported(self):
        channel = RequestChannel()
        results = []
        worker = _request_in_thread(channel, "mystery", None, results)
        channel.serve_pending(max_requests=1, block=5)
        worker.join(timeout=5)
        assert results[0][0] == "ChannelError"
        assert "No handler" in results[0][1]

    def test_timeout_forgets_request(self):
        channel = RequestChannel(timeout=0.01)
        with pytest.raises(ChannelTimeoutError, match="timed out"):
            channel.request("slow")
        assert channel.pending_count == 0
        calls = []
        channel.register("slow", calls.append)
        assert channel.serve_pending() == 0
        assert calls == []

    def test_serve_pending_empty_queue(self):
        assert RequestChannel().serve_pending() == 0

    def test_expired_request_does_not_block_live_one(self):
        channel = RequestChannel({"echo": lambda payload: payload}, timeout=0.01)
        with pytest.raises(ChannelTimeoutError):
            channel.request("echo", "stale")
        results = []
        worker = _request_in_thread(channel, "echo", "fresh", results)
        served = 0
        while served < 1:
            served += channel.serve_pending(block=5)
        worker.join(timeout=5)
        assert served == 1
        assert results == [("ok", "fresh")]
