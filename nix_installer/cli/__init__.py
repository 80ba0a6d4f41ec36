"""Command line interface for nix-installer."""
