"""Helpers that reduce personal data before it is stored or displayed."""

from __future__ import annotations


def mask_email(email: str) -> str:
    """Keep the first and last character of the local part.

    ``jane.doe@example.com`` becomes ``j***e@example.com``.
    """
    if not email:
        return "no-email"

    username, _, domain = email.partition("@")
    if not username or not domain:
        return email

    tail = username[-1] if len(username) > 1 else ""
    return f"{username[0]}***{tail}@{domain}"


def last_ip_octet(ip: str) -> str:
    """Last octet of an IPv4 address, or the last three characters otherwise."""
    octets = ip.split(".")
    if len(octets) == 4:
        return octets[3]
    return ip[-3:]
