#!/usr/bin/env python3
# platform_manager.py
"""
Helper functions shared by the relay and the asset cache worker.
Parameters come from environment variables locally and from the
AWS Parameter Store when RELAY_PARAMETER_SOURCE is "ssm".
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator

import boto3

PARAMETER_SOURCE_ENV = "RELAY_PARAMETER_SOURCE"


""" AWS Parameter Store """


def _chunk(iterable: Iterable[str], size: int) -> Iterator[list[str]]:
    """
    Chunk an iterable into lists of size `size`.
    Used for SSM get_parameters batching because the API only allows up to 10 names at a time.
    """
    it = iter(iterable)
    while True:
        chunk = list([x for _, x in zip(range(size), it, strict=False)])
        if not chunk:
            break
        yield chunk


def _get_ssm_parameters(
    param_names: list[str],
    base_path: str,
    *,
    decrypt: bool,
    region_name: str,
) -> dict[str, str | None]:
    """
    Retrieve parameters under `base_path` by leaf name.
    Returns a dict mapping each requested leaf name to its value (or None if missing).
    """
    ssm = boto3.client("ssm", region_name=region_name)

    # Normalize base_path (exactly one trailing slash)
    base = base_path.rstrip("/") + "/"

    # Pre-fill with None so missing params are explicit
    result: dict[str, str | None] = {name.lower(): None for name in param_names}

    if not param_names:
        return result

    # Build full paths and keep a reverse map to leaf
    to_fetch = [base + name.lower() for name in param_names]
    leaf_by_full = {base + name.lower(): name.lower() for name in param_names}

    for group in _chunk(to_fetch, 10):  # SSM get_parameters max 10 names
        resp = ssm.get_parameters(Names=group, WithDecryption=decrypt)

        for p in resp.get("Parameters", []):
            full = p["Name"]
            leaf = leaf_by_full.get(full, full)
            if leaf is not None:
                result[leaf] = p["Value"]

    return result


def _get_env_parameters(param_names: list[str]) -> dict[str, str | None]:
    result = {}
    for param_name in param_names:
        # Parameters are stored in the environment variables in uppercase
        # But we want to store them in lowercase in the result dictionary
        result[param_name.lower()] = os.getenv(param_name.upper())
    return result


def get_parameters(
    param_names: list[str] | str,
    base_path: str,
    *,
    decrypt: bool = False,
    region_name: str = "us-east-1",
) -> dict[str, str | None]:
    """
    Look up parameters by leaf name.

    Args:
        param_names: One or more parameter names (case-insensitive).
        base_path: Parameter Store path the names live under. Ignored for the
            environment source.
        decrypt: Decrypt SecureString parameters (Parameter Store only).
        region_name: AWS region for the Parameter Store client.

    Returns:
        dict: Lowercase parameter name -> value, or None when the parameter is missing.
    """
    if isinstance(param_names, str):
        param_names = [param_names]

    source = os.getenv(PARAMETER_SOURCE_ENV, "env").lower()
    if source == "ssm":
        return _get_ssm_parameters(
            param_names, base_path, decrypt=decrypt, region_name=region_name
        )
    if source != "env":
        raise ValueError(f"Unknown parameter source: {source}")
    return _get_env_parameters(param_names)


""" AWS CloudWatch """


def create_logger(
    log_level: str = "INFO", logger_name: str = __name__
) -> logging.Logger:
    """
    Create a logger for AWS Lambda that outputs to CloudWatch.

    Args:
        log_level (str): Logging level (e.g., "INFO", "DEBUG").
        logger_name (str): Name for the logger instance.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, log_level))

    # Check if the logger already has handlers to avoid duplication
    if not logger.hasHandlers():
        # Create a console handler
        handler = logging.StreamHandler()
        handler.setLevel(getattr(logging, log_level))

        # Create a formatter and set it for the handler
        formatter = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(formatter)

        # Add the handler to the logger
        logger.addHandler(handler)

    return logger
