"""Adapters for the courier tracking API and the issue tracker."""
