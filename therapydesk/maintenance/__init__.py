"""Maintenance and migration routines used by the root-level scripts"""
