"""Core types shared across formcheck: exceptions, tagged values and protocols."""
