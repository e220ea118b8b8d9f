"""Pinata provider integration."""

from pinguard.pinata.client import PinataClient, PinataCredentials
from pinguard.pinata.urls import extract_cid, gateway_url

__all__ = ["PinataClient", "PinataCredentials", "extract_cid", "gateway_url"]
