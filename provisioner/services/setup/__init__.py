"""Setup (provisioning) services.

This package contains orchestration helpers that *provision* or *verify* the
Google Cloud project a run targets (project, billing link, enabled services).
"""
