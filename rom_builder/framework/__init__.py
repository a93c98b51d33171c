"""Project-specific framework utilities.

This package holds the structural pieces the stages are written against:

- `rom_builder.framework.config_parser` / `config`: the `config.txt` format and
  the immutable `Configuration` projected from it
- `rom_builder.framework.settings`: YAML runtime settings (logging, tool options)
- `rom_builder.framework.tools` / `processes`: external tool invocation and the
  long-lived emulator/editor slots
- `rom_builder.framework.artifacts`: temp/output ROM staging
- `rom_builder.framework.preconditions`: reusable stage gates

For reusable, project-agnostic pipeline primitives, use `pipelinekit`.
"""
