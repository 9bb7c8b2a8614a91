"""Command line interfaces for deploycfg."""
