#!/usr/bin/env python3
"""
Record Toolkit — record extraction functions for domainenum.

Turns the raw text returned by the lookups into the records the report
prints. Nothing here does I/O: extractors that need further lookups (reverse
DNS, MX fan-out) are handed the lookup callables. Empty input always means
"not found" and yields None.
"""
import re
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

# Import helpers from domainenum
from domainenum import is_valid_ip


Lines = Union[str, Iterable[str]]
Resolver = Callable[[str, str], List[str]]
ReverseResolver = Callable[[str], List[str]]


# --- Utility ---

def format_ttl(seconds: int) -> str:
    """Convert TTL seconds to human-readable string."""
    if seconds >= 86400:
        count = seconds // 86400
        return f"{seconds} ({count} day{'s' if count != 1 else ''})"
    elif seconds >= 3600:
        count = seconds // 3600
        return f"{seconds} ({count} hour{'s' if count != 1 else ''})"
    elif seconds >= 60:
        count = seconds // 60
        return f"{seconds} ({count} minute{'s' if count != 1 else ''})"
    else:
        return f"{seconds} ({seconds} second{'s' if seconds != 1 else ''})"


def _as_lines(raw: Optional[Lines]) -> List[str]:
    """Accepts newline-delimited text or a sequence of lines; drops blanks."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.splitlines()
    return [line.strip() for line in raw if line and line.strip()]


def _strip_dot(name: str) -> str:
    return name[:-1] if name.endswith(".") else name


# --- WHOIS ---

class DelimiterProfile(NamedTuple):
    """Where the useful part of a registry's WHOIS answer starts and ends."""
    name: str
    start: str
    end: str
    end_inclusive: bool = False
    key_value_only: bool = False


# Checked in order against the apex; the first match wins
DELIMITER_PROFILES: List[Tuple[re.Pattern, DelimiterProfile]] = [
    (re.compile(r'\.fi$'),
     DelimiterProfile("fi", "domain.............:", ">>> Last update of WHOIS database")),
    (re.compile(r'\.uk$'),
     DelimiterProfile("uk", "Domain name:", "WHOIS lookup made at")),
    (re.compile(r'\.(?:ru|su)$'),
     DelimiterProfile("ru", "domain:", "Last updated on", key_value_only=True)),
    (re.compile(r'^example\.com$'),
     DelimiterProfile("example.com", "Domain Name:", "DNSSEC:", end_inclusive=True,
                      key_value_only=True)),
]

DEFAULT_DELIMITER_PROFILE = DelimiterProfile(
    "default", "Domain Name:", ">>> Last update of whois database", key_value_only=True)

KEY_VALUE_PATTERN = re.compile(r'^[^:\s][^:]*:\s*\S')


def apex_domain(domain: str) -> str:
    """Returns the last two labels of a domain (example.co.uk -> co.uk)."""
    labels = _strip_dot(domain.strip()).lower().split(".")
    return ".".join(labels[-2:])


def select_delimiter_profile(apex: str) -> DelimiterProfile:
    for pattern, profile in DELIMITER_PROFILES:
        if pattern.search(apex.lower()):
            return profile
    return DEFAULT_DELIMITER_PROFILE


def extract_whois(raw: Optional[str], apex: str) -> Optional[List[str]]:
    """
    Cuts the registration block out of a raw WHOIS answer.

    The window starts at the profile's start marker and stops at its end
    marker (or at the end of the text when the end marker is missing).
    Markers are matched case-insensitively. Returns the trimmed, non-blank
    lines of the window, or None when the registry has no match for the
    apex or the start marker never appears.
    """
    if not raw or not raw.strip():
        return None
    if f'No match for "{apex.upper()}"' in raw:
        return None

    profile = select_delimiter_profile(apex)

    start_match = re.search(re.escape(profile.start), raw, re.IGNORECASE)
    if not start_match:
        return None
    start = start_match.start()

    end_match = re.compile(re.escape(profile.end), re.IGNORECASE).search(raw, start_match.end())
    if not end_match:
        end = len(raw)
    elif profile.end_inclusive:
        line_end = raw.find("\n", end_match.start())
        end = len(raw) if line_end < 0 else line_end
    else:
        end = end_match.start()

    lines = _as_lines(raw[start:end])
    if profile.key_value_only:
        lines = [line for line in lines if KEY_VALUE_PATTERN.match(line)]
    return lines or None


# --- SOA ---

SOA_FIELDS: Tuple[str, ...] = ("mname", "rname", "serial", "refresh", "retry", "expire", "ttl")

UNESCAPED_DOT = re.compile(r'(?<!\\)\.')


class SOAOverflow(ValueError):
    """An SOA answer with more fields than an SOA record has."""


def _mailbox(rname: str) -> str:
    # hostmaster.example.com -> hostmaster@example.com, john\.doe.example.com -> john.doe@example.com
    match = UNESCAPED_DOT.search(rname)
    if not match:
        return rname.replace("\\.", ".")
    local = rname[:match.start()].replace("\\.", ".")
    return f"{local}@{rname[match.end():]}"


def extract_soa(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Parses a short-form SOA answer:
        "ns1.example.com. hostmaster.example.com. 2024010100 3600 900 604800 300"
    Leading CNAME lines (a single host name) are skipped and the first
    record line is parsed. Returns a dict keyed by SOA_FIELDS, or None for
    an empty or short answer. Raises SOAOverflow when the record has more
    than seven fields.
    """
    records = [line for line in _as_lines(raw) if len(line.split()) > 1]
    if not records:
        return None

    tokens = records[0].split()
    if len(tokens) > len(SOA_FIELDS):
        raise SOAOverflow(
            f"SOA answer has {len(tokens)} fields, expected {len(SOA_FIELDS)}: '{records[0]}'")
    if len(tokens) < len(SOA_FIELDS):
        return None

    record = dict(zip(SOA_FIELDS, tokens))
    record["mname"] = _strip_dot(record["mname"])
    record["rname"] = _mailbox(_strip_dot(record["rname"]))
    return record


# --- Address / WWW ---

def extract_addresses(raw: Optional[Lines],
                      reverse_resolve: ReverseResolver) -> Optional[List[Dict[str, Optional[str]]]]:
    """
    Pairs every forward-resolved address with its reverse hostname.
    Input order is kept and duplicates are not removed.
    """
    entries: List[Dict[str, Optional[str]]] = []
    for ip in _as_lines(raw):
        names = [_strip_dot(n) for n in _as_lines(reverse_resolve(ip))]
        entries.append({"ip": ip, "reverse_hostname": names[0] if names else None})
    return entries or None


def extract_www(raw: Optional[Lines], domain: str) -> Optional[str]:
    values = _as_lines(raw)
    if not values:
        return None
    return f"www.{domain} >> {' '.join(values)}"


# --- HTTP / TXT ---

def extract_http(raw: Optional[str]) -> Optional[str]:
    if not raw or not raw.strip():
        return None
    return raw.strip()


def extract_txt(raw: Optional[Lines]) -> Optional[List[str]]:
    return _as_lines(raw) or None


# --- Certificate ---

ISSUER_ORG_QUOTED = re.compile(r'\bO\s*=\s*"([^"]*)"')
ISSUER_ORG_PLAIN = re.compile(r'\bO\s*=\s*([^,\n]+)')

CERTIFICATE_MARKERS: Dict[str, str] = {
    "issuer_dn":   r'Issuer:',
    "subject_dn":  r'Subject:',
    "serial":      r'Serial Number:',
    "valid_from":  r'Not Before\s*:',
    "valid_until": r'Not After\s*:',
}

# Extension values are printed on the line after their label
CERTIFICATE_EXTENSION_MARKERS: Dict[str, str] = {
    "ski":       r'X509v3 Subject Key Identifier:',
    "aki":       r'X509v3 Authority Key Identifier:',
    "key_usage": r'X509v3 Key Usage:',
}


def _marker_value(lines: List[str], marker: str, next_line: bool = False) -> str:
    pattern = re.compile(rf'^\s*{marker}\s*(.*)$')
    for i, line in enumerate(lines):
        match = pattern.match(line)
        if not match:
            continue
        value = match.group(1).strip()
        if value and not next_line:
            return value
        for following in lines[i + 1:]:
            if following.strip():
                return following.strip()
        return ""
    return ""


def _subject_alt_names(lines: List[str]) -> List[str]:
    names: List[str] = []
    for line in lines:
        if "DNS:" not in line:
            continue
        for token in line.split(","):
            token = token.strip()
            if not token.startswith("DNS:"):
                continue
            name = "".join(token[len("DNS:"):].split())
            if name and name not in names:
                names.append(name)
    return names


def extract_certificate(dump: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Reads certificate fields from an `openssl x509 -text` style dump.
    Any field whose label is missing is left empty. Returns None for an
    empty dump.
    """
    if not dump or not dump.strip():
        return None
    lines = dump.splitlines()

    record: Dict[str, Any] = {key: _marker_value(lines, marker)
                              for key, marker in CERTIFICATE_MARKERS.items()}
    for key, marker in CERTIFICATE_EXTENSION_MARKERS.items():
        record[key] = _marker_value(lines, marker, next_line=True)

    if record["aki"].lower().startswith("keyid:"):
        record["aki"] = record["aki"][len("keyid:"):]

    match = ISSUER_ORG_QUOTED.search(record["issuer_dn"]) or ISSUER_ORG_PLAIN.search(record["issuer_dn"])
    record["issuer_org"] = match.group(1).strip() if match else ""
    record["subject_alt_names"] = _subject_alt_names(lines)
    return record


# --- MX ---

MX_ANSWER_PATTERN = re.compile(r'^(\d+)\s+(\S+)$')


def mx_targets(answers: Optional[Lines]) -> List[str]:
    """
    Host names from short-form MX answers ("10 mx.example.com."), in order.
    Lines that are not "<preference> <host>" (CNAME chain entries) are skipped.
    """
    targets = []
    for line in _as_lines(answers):
        match = MX_ANSWER_PATTERN.match(line)
        if not match:
            continue
        host = _strip_dot(match.group(2))
        if host:
            targets.append(host)
    return targets


def extract_mx(targets: List[str], resolve: Resolver,
               reverse_resolve: ReverseResolver) -> Optional[List[Dict[str, Any]]]:
    """
    Resolves every MX host to its A and AAAA addresses and every address to
    its PTR names. Emits one entry per (host, address) pair; answers that are
    not addresses (CNAME targets) are skipped.
    """
    if not targets:
        return None

    entries: List[Dict[str, Any]] = []
    for host in targets:
        answers = _as_lines(resolve(host, 'A')) + _as_lines(resolve(host, 'AAAA'))
        for ip in sorted(set(answers)):
            if not is_valid_ip(ip):
                continue
            ptr_names = [_strip_dot(n) for n in _as_lines(reverse_resolve(ip))]
            entries.append({"mx_host": host, "ip": ip, "reverse_ptr_names": ptr_names})
    return entries or None
