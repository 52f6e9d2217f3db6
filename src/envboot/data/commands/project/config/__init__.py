"""SUMMARY: Inspect project configuration

The project layer (.envboot/config.yaml) is merged over the user and
bundled layers; ENVBOOT_<SECTION>__<KEY> variables override everything.
"""
