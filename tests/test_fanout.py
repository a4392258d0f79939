"""
Tests for address, www, HTTP, MX and TXT extraction.
Run with: pytest tests/test_fanout.py -v
"""
from unittest.mock import MagicMock

import pytest

from record_toolkit import (
    extract_addresses, extract_http, extract_mx, extract_txt, extract_www, mx_targets,
)

PTR = {
    "93.184.216.34": ["edge.example.net."],
    "2606:2800:220:1:248:1893:25c8:1946": [],
    "192.0.2.25": ["mail-a.example.net.", "mail-b.example.net."],
    "192.0.2.26": ["mx2.example.net."],
}


def _reverse(ip):
    return PTR.get(ip, [])


def test_addresses_pair_with_reverse_names():
    raw = "93.184.216.34\n\n2606:2800:220:1:248:1893:25c8:1946\n"
    assert extract_addresses(raw, _reverse) == [
        {"ip": "93.184.216.34", "reverse_hostname": "edge.example.net"},
        {"ip": "2606:2800:220:1:248:1893:25c8:1946", "reverse_hostname": None},
    ]


def test_addresses_keep_duplicates_and_order():
    reverse = MagicMock(side_effect=_reverse)
    record = extract_addresses(["192.0.2.26", "93.184.216.34", "192.0.2.26"], reverse)
    assert [e["ip"] for e in record] == ["192.0.2.26", "93.184.216.34", "192.0.2.26"]
    assert reverse.call_count == 3


def test_addresses_use_first_ptr_name():
    record = extract_addresses(["192.0.2.25"], _reverse)
    assert record[0]["reverse_hostname"] == "mail-a.example.net"


@pytest.mark.parametrize("raw", [None, "", "\n \n", []])
def test_addresses_empty(raw):
    reverse = MagicMock()
    assert extract_addresses(raw, reverse) is None
    reverse.assert_not_called()


def test_www_line():
    assert extract_www(["example.com.", "93.184.216.34"], "example.com") == \
        "www.example.com >> example.com. 93.184.216.34"


@pytest.mark.parametrize("raw", [None, "", []])
def test_www_empty(raw):
    assert extract_www(raw, "example.com") is None


def test_http_passthrough():
    raw = "HTTP/1.1 301 Moved Permanently\nLocation: https://example.com/\n"
    assert extract_http(raw) == "HTTP/1.1 301 Moved Permanently\nLocation: https://example.com/"


@pytest.mark.parametrize("raw", [None, "", "  \n"])
def test_http_empty(raw):
    assert extract_http(raw) is None


def test_txt_lines():
    assert extract_txt(['"v=spf1 -all"', "", '"google-site-verification=abc"']) == \
        ['"v=spf1 -all"', '"google-site-verification=abc"']


def test_txt_empty():
    assert extract_txt([]) is None


def test_mx_targets_strip_preference_and_dot():
    answers = ["10 mx1.example.net.", "20 mx2.example.net.", "", "0 ."]
    assert mx_targets(answers) == ["mx1.example.net", "mx2.example.net"]


def test_mx_fanout_one_entry_per_host_and_address():
    forward = {
        ("mx1.example.net", "A"): ["192.0.2.26", "192.0.2.25", "192.0.2.26"],
        ("mx1.example.net", "AAAA"): [],
        ("mx2.example.net", "A"): ["alias.example.net.", "192.0.2.26"],
        ("mx2.example.net", "AAAA"): [],
    }
    record = extract_mx(["mx1.example.net", "mx2.example.net"],
                        lambda name, rtype: forward[(name, rtype)], _reverse)
    assert record == [
        {"mx_host": "mx1.example.net", "ip": "192.0.2.25",
         "reverse_ptr_names": ["mail-a.example.net", "mail-b.example.net"]},
        {"mx_host": "mx1.example.net", "ip": "192.0.2.26", "reverse_ptr_names": ["mx2.example.net"]},
        {"mx_host": "mx2.example.net", "ip": "192.0.2.26", "reverse_ptr_names": ["mx2.example.net"]},
    ]


def test_mx_no_targets():
    resolve = MagicMock()
    assert extract_mx([], resolve, _reverse) is None
    resolve.assert_not_called()


def test_mx_targets_without_addresses():
    assert extract_mx(["mx.example.net"], lambda name, rtype: [], _reverse) is None


def test_mx_targets_skip_cname_chain():
    answers = ["github.com.", "10 mx.example.net."]
    assert mx_targets(answers) == ["mx.example.net"]
