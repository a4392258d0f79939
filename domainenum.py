#!/usr/bin/env python3
import argparse
import importlib.util
import re
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple


__version__ = "1.0"

# Resolver used for address and www lookups when -n is not given
DEFAULT_NAMESERVER: str = "8.8.8.8"

# Report sections, in the order they are printed
REPORT_SECTIONS: List[Tuple[str, str]] = [
    ("whois", "Whois"),
    ("soa", "SOA"),
    ("address", "Address"),
    ("www", "WWW"),
    ("http", "HTTP"),
    ("certificate", "SSL Certificate"),
    ("mx", "MX"),
    ("txt", "TXT"),
]

# Import name -> distribution name, checked before any lookup runs
REQUIRED_DISTRIBUTIONS: Dict[str, str] = {
    "dns":          "dnspython",
    "whois":        "python-whois",
    "tldextract":   "tldextract",
    "requests":     "requests",
    "cryptography": "cryptography",
}

NOT_FOUND_MESSAGES: Dict[str, str] = {
    "whois":       "No WHOIS information found",
    "soa":         "No SOA record found",
    "address":     "No address information found",
    "www":         "No www information found",
    "http":        "No HTTP information found",
    "certificate": "No SSL certificate information found",
    "mx":          "No MX records found",
    "txt":         "No TXT records found",
}


# --- Input Validation ---

DOMAIN_PATTERN = re.compile(
    r'^(?=.{1,253}$)'
    r'(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+'
    r'[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$',
    re.IGNORECASE,
)
IPV4_PATTERN = re.compile(
    r'^(?:(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)\.){3}'
    r'(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)$'
)
IPV6_PATTERN = re.compile(r'^(?:[0-9a-f]{0,4}:){2,7}[0-9a-f]{0,4}$', re.IGNORECASE)


def is_valid_domain(value: str) -> bool:
    """Checks that a string is a syntactically valid fully qualified domain name."""
    return bool(value) and DOMAIN_PATTERN.match(value) is not None


def is_valid_ip(value: str) -> bool:
    """Checks that a string is an IPv4 dotted quad or looks like an IPv6 address."""
    if not value:
        return False
    return IPV4_PATTERN.match(value) is not None or IPV6_PATTERN.match(value) is not None


# --- Argument Parsing ---

class RunConfig(NamedTuple):
    domain: str
    nameserver: str = DEFAULT_NAMESERVER


# Error codes produced by the argument state machine
NO_DOMAIN = "NoDomain"
TOO_MANY_ARGS = "TooManyArgs"
BAD_DOMAIN = "BadDomain"
BAD_INPUT = "BadInput"
BAD_FLAG_POSITION = "BadFlagPosition"
UNKNOWN_FLAG = "UnknownFlag"
NO_NAMESERVER = "NoNameserver"
BAD_IP = "BadIP"

ERROR_MESSAGES: Dict[str, str] = {
    NO_DOMAIN:         "No domain given.",
    TOO_MANY_ARGS:     "Too many arguments.",
    BAD_DOMAIN:        "'{token}' is not a valid domain name.",
    BAD_INPUT:         "Unexpected argument '{token}'. Only a flag may follow the domain.",
    BAD_FLAG_POSITION: "'{token}' must be given on its own, before the domain.",
    UNKNOWN_FLAG:      "Unknown flag '{token}'.",
    NO_NAMESERVER:     "No nameserver given after '{token}'.",
    BAD_IP:            "'{token}' is not a valid IPv4 or IPv6 address.",
}

# Parser states
START = "START"
DOMAIN_OR_GLOBAL_FLAG = "DOMAIN_OR_GLOBAL_FLAG"
AFTER_DOMAIN = "AFTER_DOMAIN"
EXPECT_NS_VALUE = "EXPECT_NS_VALUE"
DONE = "DONE"
ERROR = "ERROR"

HELP_FLAGS = ("-h", "--help")
VERSION_FLAGS = ("-v", "--version")
NAMESERVER_FLAGS = ("-n", "--nameserver")
MAX_ARGS = 3


class InputError(Exception):
    """A command line the argument state machine rejected."""

    def __init__(self, code: str, token: str = ""):
        self.code = code
        self.token = token
        super().__init__(ERROR_MESSAGES[code].format(token=token))


def parse_arguments(tokens: Sequence[str]) -> Tuple[str, Optional[RunConfig]]:
    """
    Runs the argument state machine over the command line tokens.

    Global flags (-h, -v) are only accepted in first position; the nameserver
    flag is only accepted after the domain. Returns ("help", None),
    ("version", None) or ("run", RunConfig). Raises InputError otherwise.
    """
    tokens = list(tokens)
    state = START
    index = 0
    domain: Optional[str] = None
    nameserver = DEFAULT_NAMESERVER
    error: Optional[InputError] = None

    while state not in (DONE, ERROR):
        if state == START:
            if not tokens:
                error, state = InputError(NO_DOMAIN), ERROR
            elif len(tokens) > MAX_ARGS:
                error, state = InputError(TOO_MANY_ARGS), ERROR
            else:
                state = DOMAIN_OR_GLOBAL_FLAG

        elif state == DOMAIN_OR_GLOBAL_FLAG:
            token = tokens[index]
            if token in HELP_FLAGS:
                return "help", None
            if token in VERSION_FLAGS:
                return "version", None
            if token in NAMESERVER_FLAGS:
                error, state = InputError(NO_DOMAIN, token), ERROR
            elif not is_valid_domain(token) or is_valid_ip(token):
                error, state = InputError(BAD_DOMAIN, token), ERROR
            else:
                domain = token.lower()
                index += 1
                state = AFTER_DOMAIN

        elif state == AFTER_DOMAIN:
            if index >= len(tokens):
                state = DONE
                continue
            token = tokens[index]
            if not token.startswith("-"):
                error, state = InputError(BAD_INPUT, token), ERROR
            elif token in NAMESERVER_FLAGS:
                index += 1
                state = EXPECT_NS_VALUE
            elif token in HELP_FLAGS or token in VERSION_FLAGS:
                error, state = InputError(BAD_FLAG_POSITION, token), ERROR
            else:
                error, state = InputError(UNKNOWN_FLAG, token), ERROR

        elif state == EXPECT_NS_VALUE:
            if index >= len(tokens):
                error, state = InputError(NO_NAMESERVER, tokens[index - 1]), ERROR
            elif not is_valid_ip(tokens[index]):
                error, state = InputError(BAD_IP, tokens[index]), ERROR
            else:
                nameserver = tokens[index]
                index += 1
                state = AFTER_DOMAIN

    if error is not None:
        raise error
    return "run", RunConfig(domain=domain, nameserver=nameserver)


def build_help_parser() -> argparse.ArgumentParser:
    """Argument parser used only to render usage and help text."""
    parser = argparse.ArgumentParser(
        prog="domainenum",
        usage="domainenum <domain> [-n|--nameserver <ipv4-or-ipv6>]\n"
              "       domainenum -h|--help\n"
              "       domainenum -v|--version",
        description="""
domainenum — single domain reconnaissance.

Prints WHOIS, SOA, address (with reverse DNS), www, HTTP header,
SSL certificate, MX and TXT information for a domain.

Options must follow the domain, except -h and -v which must be
given on their own.
""",
        formatter_class=argparse.RawTextHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "domain",
        help="The domain name to enumerate (e.g., example.com)."
    )
    parser.add_argument(
        "-n", "--nameserver",
        metavar="IP",
        help=f"Resolver used for address and www lookups (default: {DEFAULT_NAMESERVER})."
    )
    parser.add_argument(
        "-h", "--help",
        action="store_true",
        help="Show this help message and exit."
    )
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        help="Show the version and exit."
    )
    return parser


# --- Dependency Check ---

def check_dependencies() -> List[str]:
    """Returns the distributions whose modules cannot be imported."""
    return [dist for module, dist in REQUIRED_DISTRIBUTIONS.items()
            if importlib.util.find_spec(module) is None]


# --- Report ---

def collect_sections(config: RunConfig, warnings: List[str]) -> Dict[str, Any]:
    """
    Runs every lookup and extraction for the domain in report order.
    A failing section is recorded as not found and never stops the others;
    only SOAOverflow escapes.
    """
    import lookups
    from record_toolkit import (
        SOAOverflow, apex_domain, extract_addresses, extract_certificate,
        extract_http, extract_mx, extract_soa, extract_txt, extract_whois,
        extract_www, mx_targets,
    )

    domain = config.domain
    ns = config.nameserver

    def _reverse(ip: str) -> List[str]:
        return lookups.reverse_resolve(ip, warnings=warnings)

    def _resolve(name: str, record_type: str) -> List[str]:
        return lookups.resolve(name, record_type, warnings=warnings)

    def _whois() -> Any:
        apex = apex_domain(domain)
        registrable = lookups.registrable_domain(domain)
        if registrable and registrable != apex:
            warnings.append(f"Warning: WHOIS is queried for '{apex}', "
                            f"but the registrable domain appears to be '{registrable}'.")
        return extract_whois(lookups.whois_query(apex, warnings=warnings), apex)

    def _soa() -> Any:
        return extract_soa("\n".join(lookups.resolve(domain, 'SOA', warnings=warnings)))

    def _address() -> Any:
        addresses = (lookups.resolve(domain, 'A', server=ns, warnings=warnings)
                     + lookups.resolve(domain, 'AAAA', server=ns, warnings=warnings))
        return extract_addresses([a for a in addresses if is_valid_ip(a)], _reverse)

    def _www() -> Any:
        return extract_www(lookups.resolve(f"www.{domain}", 'A', server=ns, warnings=warnings), domain)

    def _http() -> Any:
        return extract_http(lookups.http_head(domain, warnings=warnings))

    def _certificate() -> Any:
        pem = lookups.tls_fetch_certificate_chain(domain, warnings=warnings)
        return extract_certificate(lookups.decode_certificate_to_text(pem))

    def _mx() -> Any:
        return extract_mx(mx_targets(lookups.resolve(domain, 'MX', warnings=warnings)),
                          _resolve, _reverse)

    def _txt() -> Any:
        return extract_txt(lookups.resolve(domain, 'TXT', warnings=warnings))

    steps: Dict[str, Callable[[], Any]] = {
        "whois": _whois, "soa": _soa, "address": _address, "www": _www,
        "http": _http, "certificate": _certificate, "mx": _mx, "txt": _txt,
    }

    sections: Dict[str, Any] = {}
    for key, _title in REPORT_SECTIONS:
        try:
            sections[key] = steps[key]()
        except SOAOverflow:
            raise
        except Exception as e:
            warnings.append(f"Warning: {key.upper()} lookup failed: {e}")
            sections[key] = None
    return sections


# --- Output Formatters ---

def format_heading(title: str) -> str:
    return f"\n=== {title.upper()} ==="


def format_whois(record: List[str]) -> str:
    return "\n".join(record)


def format_soa(record: Dict[str, str]) -> str:
    from record_toolkit import format_ttl

    def _timer(value: str) -> str:
        return format_ttl(int(value)) if value.isdigit() else value

    lines = [
        f"Primary NS:   {record['mname']}",
        f"Admin Email:  {record['rname']}",
        f"Serial:       {record['serial']}",
        f"Refresh:      {_timer(record['refresh'])}",
        f"Retry:        {_timer(record['retry'])}",
        f"Expire:       {_timer(record['expire'])}",
        f"Minimum TTL:  {_timer(record['ttl'])}",
    ]
    return "\n".join(lines)


def format_addresses(record: List[Dict[str, Optional[str]]]) -> str:
    lines = []
    for entry in record:
        if entry["reverse_hostname"]:
            lines.append(f"{entry['ip']} >> {entry['reverse_hostname']}")
        else:
            lines.append(entry["ip"])
    return "\n".join(lines)


def format_certificate(record: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Formats certificate fields, adding the days left when Not After parses."""
    lines = [
        f"Issuer Organization: {record['issuer_org']}",
        f"Subject:             {record['subject_dn']}",
        f"Issuer:              {record['issuer_dn']}",
        f"Serial Number:       {record['serial']}",
        f"Subject Key ID:      {record['ski']}",
        f"Authority Key ID:    {record['aki']}",
        f"Key Usage:           {record['key_usage']}",
        f"Valid From:          {record['valid_from']}",
        f"Valid Until:         {record['valid_until']}",
    ]
    try:
        expires = datetime.strptime(record["valid_until"], "%b %d %H:%M:%S %Y %Z")
    except ValueError:
        expires = None
    if expires is not None:
        now = now or datetime.now(timezone.utc)
        days = (expires.replace(tzinfo=timezone.utc) - now).days
        if days >= 0:
            lines.append(f"Days Remaining:      {days}")
        else:
            lines.append(f"Days Remaining:      expired {-days} day{'s' if days != -1 else ''} ago")
    sans = record["subject_alt_names"]
    lines.append(f"Subject Alt Names:   {', '.join(sans) if sans else 'None'}")
    return "\n".join(lines)


def format_mx(record: List[Dict[str, Any]]) -> str:
    lines = []
    for entry in record:
        ptr = ", ".join(entry["reverse_ptr_names"]) or "no PTR record"
        lines.append(f"{entry['mx_host']} >> {entry['ip']} >> {ptr}")
    return "\n".join(lines)


def format_lines(record: Any) -> str:
    if isinstance(record, str):
        return record
    return "\n".join(record)


SECTION_FORMATTERS: Dict[str, Callable[[Any], str]] = {
    "whois":       format_whois,
    "soa":         format_soa,
    "address":     format_addresses,
    "www":         format_lines,
    "http":        format_lines,
    "certificate": format_certificate,
    "mx":          format_mx,
    "txt":         format_lines,
}


def format_report(config: RunConfig, sections: Dict[str, Any]) -> str:
    """Formats the collected sections as the text report."""
    lines = [f"--- Enumerating Domain: {config.domain} (nameserver {config.nameserver}) ---"]
    for key, title in REPORT_SECTIONS:
        lines.append(format_heading(title))
        record = sections.get(key)
        if record:
            lines.append(SECTION_FORMATTERS[key](record))
        else:
            lines.append(NOT_FOUND_MESSAGES[key])
    lines.append(f"\n--- Enumeration Complete for: {config.domain} ---")
    return "\n".join(lines)


def build_report(config: RunConfig, warnings: Optional[List[str]] = None) -> str:
    """Collects every section for the configured domain and returns the report text."""
    if warnings is None:
        warnings = []
    return format_report(config, collect_sections(config, warnings))


def main(argv: Optional[Sequence[str]] = None) -> None:
    tokens = list(sys.argv[1:] if argv is None else argv)
    help_parser = build_help_parser()

    try:
        action, config = parse_arguments(tokens)
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        help_parser.print_usage(sys.stderr)
        # Input errors exit with status 0
        sys.exit(0)

    if action == "help":
        help_parser.print_help()
        sys.exit(0)
    if action == "version":
        print(f"domainenum {__version__}")
        sys.exit(0)

    missing = check_dependencies()
    if missing:
        for dist in missing:
            print(f"Error: required package '{dist}' is not installed. "
                  f"Install it with: pip install {dist}", file=sys.stderr)
        sys.exit(1)

    from record_toolkit import SOAOverflow

    warnings: List[str] = []
    try:
        report = build_report(config, warnings=warnings)
    except SOAOverflow as e:
        for w in warnings:
            print(w, file=sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(report)
    for w in warnings:
        print(w, file=sys.stderr)
    sys.exit(0)


if __name__ == "__main__":
    main()
