"""Chart specification compiler.

Widgets are described by declarative `ChartConfig` objects rather than bespoke
view logic. This package merges widget parameters, builds series and option
objects per chart kind, and assembles table widgets on top of the pure
`analysis` pipeline.
"""
