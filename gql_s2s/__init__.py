"""Compile extended GraphQL schemas to standard SDL and rework queries against them."""

import logging

__version__ = "0.1.0"

log = logging.getLogger("gql_s2s")
log.addHandler(logging.NullHandler())
