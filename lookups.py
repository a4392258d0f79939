#!/usr/bin/env python3
"""
Lookups — network collaborators for domainenum.

Every function here performs exactly one kind of lookup and hands back the
raw, loosely structured text the record extractors work on. Lookup failures
never raise: they are turned into an empty result plus a warning.
"""
import socket
import ssl
import sys
from typing import List, Optional

import dns.exception
import dns.resolver
import dns.reversename
import requests
import tldextract
import whois
from cryptography import x509
from cryptography.x509.oid import ExtensionOID, NameOID


DNS_TIMEOUT: float = 5.0
HTTP_TIMEOUT_SECONDS: int = 30
TLS_PORT: int = 443
TLS_TIMEOUT: float = 10.0

# Offline public suffix snapshot, no fetch at runtime
_SUFFIX_EXTRACT = tldextract.TLDExtract(suffix_list_urls=(), include_psl_private_domains=True)

# Short names OpenSSL uses when printing distinguished names
_DN_SHORT_NAMES = {
    NameOID.COUNTRY_NAME: "C",
    NameOID.STATE_OR_PROVINCE_NAME: "ST",
    NameOID.LOCALITY_NAME: "L",
    NameOID.ORGANIZATION_NAME: "O",
    NameOID.ORGANIZATIONAL_UNIT_NAME: "OU",
    NameOID.COMMON_NAME: "CN",
    NameOID.SERIAL_NUMBER: "serialNumber",
    NameOID.EMAIL_ADDRESS: "emailAddress",
    NameOID.BUSINESS_CATEGORY: "businessCategory",
    NameOID.JURISDICTION_COUNTRY_NAME: "jurisdictionC",
}

_KEY_USAGE_LABELS = [
    ("digital_signature", "Digital Signature"),
    ("content_commitment", "Non Repudiation"),
    ("key_encipherment", "Key Encipherment"),
    ("data_encipherment", "Data Encipherment"),
    ("key_agreement", "Key Agreement"),
    ("key_cert_sign", "Certificate Sign"),
    ("crl_sign", "CRL Sign"),
]


def _warn(warnings: Optional[List[str]], msg: str) -> None:
    if warnings is not None:
        warnings.append(msg)
    else:
        print(msg, file=sys.stderr)


# --- DNS ---

def resolve(name: str, record_type: str, server: Optional[str] = None,
            warnings: Optional[List[str]] = None,
            timeout: float = DNS_TIMEOUT) -> List[str]:
    """
    Performs a DNS lookup and returns the answer in short form, one line per
    record, the way `dig +short` prints it (CNAME chain first, trailing dots kept).
    Optionally queries a specific nameserver.
    """
    lines: List[str] = []
    try:
        resolver = dns.resolver.Resolver()
        if server:
            resolver.nameservers = [server]
        resolver.lifetime = timeout
        resolver.timeout = timeout
        answer = resolver.resolve(name, record_type, raise_on_no_answer=False)

        if answer.rrset is None:
            return []

        # The full answer section includes any CNAMEs followed on the way
        for rrset in answer.response.answer:
            for rdata in rrset:
                lines.append(rdata.to_text().strip())

    except dns.resolver.NXDOMAIN:
        pass  # An absent name is just an empty answer
    except dns.resolver.NoAnswer:
        pass
    except dns.resolver.NoNameservers:
        _warn(warnings, f"Warning: Could not contact nameservers for '{name}' ({record_type}).")
    except dns.resolver.Timeout:
        _warn(warnings, f"Warning: DNS query for {record_type} records of '{name}' timed out.")
    except dns.exception.DNSException as e:
        _warn(warnings, f"Warning: DNS error for '{name}' ({record_type}): {e}")
    except ValueError as e:
        # Raised by the nameservers assignment for addresses dnspython rejects
        _warn(warnings, f"Warning: Invalid nameserver '{server}' for '{name}' ({record_type}): {e}")
        return []

    return lines


def reverse_resolve(ip: str, warnings: Optional[List[str]] = None,
                    timeout: float = DNS_TIMEOUT) -> List[str]:
    """Performs a PTR lookup for an address and returns the names found."""
    try:
        rev_name = dns.reversename.from_address(ip)
    except (dns.exception.SyntaxError, ValueError):
        _warn(warnings, f"Warning: '{ip}' is not an address that can be reverse resolved.")
        return []

    try:
        resolver = dns.resolver.Resolver()
        resolver.lifetime = timeout
        answer = resolver.resolve(rev_name, 'PTR', raise_on_no_answer=False)
        if answer.rrset is None:
            return []
        return [rr.to_text() for rr in answer.rrset]
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return []
    except dns.resolver.NoNameservers:
        _warn(warnings, f"Warning: No reachable nameservers for PTR lookup of {ip}.")
    except dns.resolver.Timeout:
        _warn(warnings, f"Warning: PTR lookup for {ip} timed out.")
    except dns.exception.DNSException as e:
        _warn(warnings, f"Warning: PTR lookup error for {ip}: {e}")
    return []


# --- WHOIS ---

def whois_query(apex: str, warnings: Optional[List[str]] = None) -> str:
    """Queries the WHOIS server for a domain and returns the raw response text."""
    try:
        # NICClient follows the referral chain and hands back unparsed text,
        # including "No match" answers that whois.whois() would raise on.
        return whois.NICClient().whois_lookup(None, apex, 0) or ""
    except whois.exceptions.PywhoisError as e:
        _warn(warnings, f"Warning: WHOIS lookup error for '{apex}': {e}")
    except socket.timeout:
        _warn(warnings, f"Warning: WHOIS lookup for '{apex}' timed out.")
    except OSError as e:
        _warn(warnings, f"Warning: WHOIS connection failed for '{apex}': {e}")
    return ""


def registrable_domain(fqdn: str) -> Optional[str]:
    """
    Extracts the registrable domain (e.g., example.co.uk) from a fully
    qualified domain name using the public suffix list.
    """
    if not fqdn:
        return None
    ext = _SUFFIX_EXTRACT(fqdn)
    return ext.registered_domain or None


# --- HTTP ---

def http_head(domain: str, timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
              warnings: Optional[List[str]] = None) -> str:
    """
    Sends a HEAD request to http://<domain>/ and returns the status line and
    response headers as a text block. Redirects are reported, not followed.
    """
    url = f"http://{domain}/"
    try:
        response = requests.head(url, timeout=timeout_seconds, allow_redirects=False)
    except requests.exceptions.Timeout:
        _warn(warnings, f"Warning: HTTP request to {url} timed out after {timeout_seconds}s.")
        return ""
    except requests.exceptions.RequestException as e:
        _warn(warnings, f"Warning: HTTP request to {url} failed: {e}")
        return ""

    version = getattr(response.raw, "version", 11) or 11
    lines = [f"HTTP/{version // 10}.{version % 10} {response.status_code} {response.reason}".rstrip()]
    for header, value in response.headers.items():
        lines.append(f"{header}: {value}")
    return "\n".join(lines)


# --- TLS ---

def tls_fetch_certificate_chain(domain: str, port: int = TLS_PORT,
                                warnings: Optional[List[str]] = None,
                                timeout: float = TLS_TIMEOUT) -> str:
    """
    Connects to the host and returns the presented certificate as PEM.
    The certificate is not verified; trust is out of scope for the report.
    """
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    try:
        with socket.create_connection((domain, port), timeout=timeout) as sock:
            with ctx.wrap_socket(sock, server_hostname=domain) as ssock:
                der = ssock.getpeercert(binary_form=True)
    except socket.timeout:
        _warn(warnings, f"Warning: TLS connection to {domain}:{port} timed out.")
        return ""
    except ssl.SSLError as e:
        _warn(warnings, f"Warning: TLS handshake with {domain}:{port} failed: {e}")
        return ""
    except OSError as e:
        _warn(warnings, f"Warning: Could not connect to {domain}:{port}: {e}")
        return ""

    if not der:
        return ""
    return ssl.DER_cert_to_PEM_cert(der)


def _format_name(name: x509.Name) -> str:
    parts = []
    for attr in name:
        key = _DN_SHORT_NAMES.get(attr.oid, attr.oid.dotted_string)
        value = str(attr.value)
        if "," in value or "+" in value:
            value = f'"{value}"'
        parts.append(f"{key} = {value}")
    return ", ".join(parts)


def _hex_colon(data: bytes) -> str:
    return ":".join(f"{b:02X}" for b in data)


def _format_date(dt) -> str:
    # Same layout as `openssl x509 -text`: "Jan  1 00:00:00 2024 GMT"
    return dt.strftime("%b ") + f"{dt.day:>2}" + dt.strftime(" %H:%M:%S %Y GMT")


def decode_certificate_to_text(pem: str) -> str:
    """
    Decodes a PEM certificate into the human readable layout printed by
    `openssl x509 -text -noout`, limited to the fields the report reads.
    Returns an empty string for empty input. Raises ValueError if the PEM
    cannot be decoded.
    """
    if not pem or not pem.strip():
        return ""
    cert = x509.load_pem_x509_certificate(pem.encode())

    not_before = cert.not_valid_before_utc
    not_after = cert.not_valid_after_utc

    serial = cert.serial_number
    lines = [
        "Certificate:",
        "    Data:",
        f"        Version: {cert.version.value + 1} ({hex(cert.version.value)})",
    ]
    if serial.bit_length() <= 64:
        lines.append(f"        Serial Number: {serial} ({hex(serial)})")
    else:
        serial_bytes = serial.to_bytes((serial.bit_length() + 7) // 8, "big")
        lines.append("        Serial Number:")
        lines.append(f"            {_hex_colon(serial_bytes).lower()}")
    lines.extend([
        f"        Issuer: {_format_name(cert.issuer)}",
        "        Validity",
        f"            Not Before: {_format_date(not_before)}",
        f"            Not After : {_format_date(not_after)}",
        f"        Subject: {_format_name(cert.subject)}",
        "        X509v3 extensions:",
    ])

    for ext in cert.extensions:
        critical = " critical" if ext.critical else ""
        if ext.oid == ExtensionOID.KEY_USAGE:
            usage = ext.value
            labels = [label for attr, label in _KEY_USAGE_LABELS if getattr(usage, attr)]
            if usage.key_agreement:
                if usage.encipher_only:
                    labels.append("Encipher Only")
                if usage.decipher_only:
                    labels.append("Decipher Only")
            lines.append(f"            X509v3 Key Usage:{critical}")
            lines.append(f"                {', '.join(labels)}")
        elif ext.oid == ExtensionOID.SUBJECT_KEY_IDENTIFIER:
            lines.append(f"            X509v3 Subject Key Identifier:{critical}")
            lines.append(f"                {_hex_colon(ext.value.digest)}")
        elif ext.oid == ExtensionOID.AUTHORITY_KEY_IDENTIFIER:
            if ext.value.key_identifier:
                lines.append(f"            X509v3 Authority Key Identifier:{critical}")
                lines.append(f"                {_hex_colon(ext.value.key_identifier)}")
        elif ext.oid == ExtensionOID.SUBJECT_ALTERNATIVE_NAME:
            names = [f"DNS:{n}" for n in ext.value.get_values_for_type(x509.DNSName)]
            names += [f"IP Address:{ip}" for ip in ext.value.get_values_for_type(x509.IPAddress)]
            lines.append(f"            X509v3 Subject Alternative Name:{critical}")
            lines.append(f"                {', '.join(names)}")

    return "\n".join(lines) + "\n"
