"""
Tests for WHOIS windowing.
Run with: pytest tests/test_whois.py -v
"""
import re

import pytest

from record_toolkit import (
    DEFAULT_DELIMITER_PROFILE, DELIMITER_PROFILES, DelimiterProfile,
    apex_domain, extract_whois, select_delimiter_profile,
)

VERISIGN_ANSWER = """
   Domain Name: GITHUB.COM
   Registry Domain ID: 1264983250_DOMAIN_COM-VRSN
   Registrar WHOIS Server: whois.markmonitor.com
   Registrar: MarkMonitor Inc.
   Creation Date: 2007-10-09T18:20:50Z
   Name Server: DNS1.P08.NSONE.NET
   DNSSEC: unsigned
   URL of the ICANN Whois Inaccuracy Complaint Form: https://www.icann.org/wicf/
>>> Last update of whois database: 2024-01-01T00:00:00Z <<<

NOTICE: The expiration date displayed in this record is the date the
registrar's sponsorship of the domain name registration in the registry is
"""

FICORA_ANSWER = """
domain.............: example.fi
status.............: Registered
created............: 1.1.2000 00:00:00
holder.............: Example Oy
   Nameservers
nserver............: ns1.example.fi [Technical Error]

>>> Last update of WHOIS database: 1.1.2024 00:00:00 (EET) <<<
Copyright (c) Finnish Transport and Communications Agency Traficom
"""

NOMINET_ANSWER = """
    Domain name:
        example.co.uk

    Registrar:
        Example Registrar Ltd [Tag = EXAMPLE]

    Name servers:
        ns1.example.net

    WHOIS lookup made at 00:00:00 01-Jan-2024

-- 
This WHOIS information is provided for free by Nominet.
"""

TCI_ANSWER = """% TCI Whois Service. Terms of use:
% https://tcinet.ru/documents/whois_ru_rf.pdf

domain:        EXAMPLE.RU
nserver:       ns1.example.ru.
state:         REGISTERED, DELEGATED, VERIFIED
org:           Example LLC
registrar:     RU-CENTER-RU
created:       2000-01-01T00:00:00Z
source:        TCI

Last updated on 2024-01-01T00:00:00Z
"""


def test_apex_is_last_two_labels():
    assert apex_domain("www.Example.COM") == "example.com"
    assert apex_domain("shop.example.co.uk") == "co.uk"
    assert apex_domain("example.com.") == "example.com"


@pytest.mark.parametrize("apex, name", [
    ("example.fi", "fi"),
    ("co.uk", "uk"),
    ("example.uk", "uk"),
    ("example.ru", "ru"),
    ("example.su", "ru"),
    ("example.com", "example.com"),
    ("EXAMPLE.COM", "example.com"),
    ("notexample.com", "default"),
    ("example.org", "default"),
    ("uk.example.org", "default"),
])
def test_profile_selection(apex, name):
    assert select_delimiter_profile(apex).name == name


def test_profile_table_is_extensible():
    extra = DelimiterProfile("de", "Domain:", "Changed:")
    DELIMITER_PROFILES.append((re.compile(r'\.de$'), extra))
    try:
        assert select_delimiter_profile("example.de") is extra
    finally:
        DELIMITER_PROFILES.pop()
    assert select_delimiter_profile("example.de") is DEFAULT_DELIMITER_PROFILE


def test_default_profile_window():
    record = extract_whois(VERISIGN_ANSWER, "github.com")
    assert record[0] == "Domain Name: GITHUB.COM"
    assert "Registrar: MarkMonitor Inc." in record
    assert "DNSSEC: unsigned" in record
    assert not any(line.startswith(">>>") for line in record)
    assert not any("NOTICE" in line for line in record)


def test_no_match_wins_over_profile():
    raw = 'No match for "NOPE-NOT-REGISTERED.COM".\n>>> Last update of whois database: x <<<\n'
    assert extract_whois(raw, "nope-not-registered.com") is None


def test_no_match_for_other_name_is_not_a_miss():
    raw = 'No match for "OTHER.COM".\n' + VERISIGN_ANSWER
    assert extract_whois(raw, "github.com") is not None


def test_fi_window():
    record = extract_whois(FICORA_ANSWER, "example.fi")
    assert record[0] == "domain.............: example.fi"
    assert "Nameservers" in record
    assert record[-1] == "nserver............: ns1.example.fi [Technical Error]"


def test_uk_window_keeps_multiline_values():
    record = extract_whois(NOMINET_ANSWER, "co.uk")
    assert record == [
        "Domain name:", "example.co.uk",
        "Registrar:", "Example Registrar Ltd [Tag = EXAMPLE]",
        "Name servers:", "ns1.example.net",
    ]


def test_ru_window_filters_key_value_lines():
    record = extract_whois(TCI_ANSWER, "example.ru")
    assert record[0] == "domain:        EXAMPLE.RU".strip()
    assert "source:        TCI" in record
    assert not any(line.startswith("%") for line in record)
    assert not any(line.startswith("Last updated") for line in record)


def test_example_com_end_marker_is_inclusive():
    record = extract_whois(VERISIGN_ANSWER.replace("GITHUB", "EXAMPLE"), "example.com")
    assert record[-1] == "DNSSEC: unsigned"


def test_missing_end_marker_runs_to_end_of_text():
    raw = "Domain Name: EXAMPLE.ORG\nRegistrar: Example\n"
    assert extract_whois(raw, "example.org") == ["Domain Name: EXAMPLE.ORG", "Registrar: Example"]


def test_missing_start_marker_is_not_found():
    assert extract_whois("Registrar: Example\n", "example.org") is None


@pytest.mark.parametrize("raw", [None, "", "   \n\t\n"])
def test_empty_answer_is_not_found(raw):
    assert extract_whois(raw, "example.com") is None


def test_extraction_is_repeatable():
    assert extract_whois(VERISIGN_ANSWER, "github.com") == extract_whois(VERISIGN_ANSWER, "github.com")


def test_window_survives_text_that_grows_when_lower_cased():
    # "İ" lower-cases to two characters
    raw = "Registrant: İİİİ\n" + VERISIGN_ANSWER
    record = extract_whois(raw, "github.com")
    assert record[0] == "Domain Name: GITHUB.COM"
    assert not any(line.startswith(">>>") for line in record)
