"""Test suite for ImageSources.HttpSource."""
