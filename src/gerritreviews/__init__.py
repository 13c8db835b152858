# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation
"""Gerrit review tables for developer portals."""

__version__ = "0.1.0"
