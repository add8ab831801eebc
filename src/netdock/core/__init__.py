"""Core library for netdock: providers, clients and the debug launch pipeline."""
