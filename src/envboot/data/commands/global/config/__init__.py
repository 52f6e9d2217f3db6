"""SUMMARY: Inspect configuration

Configuration is merged from the bundled defaults, ~/.envboot/config.yaml
(or $ENVBOOT_HOME/config.yaml), the project's .envboot/config.yaml when run
inside a project, and ENVBOOT_<SECTION>__<KEY> variables.
"""
