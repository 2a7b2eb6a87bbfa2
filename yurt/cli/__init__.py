"""Command line interface for yurt"""
