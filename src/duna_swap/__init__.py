"""Duna Swap - Steam save profile swapper.

This package copies one Steam account's per-game save data
(``userdata/<account>/<appid>``) into one or more other accounts, keeping
the overwritten data recoverable under ``userdata/dunabackups``.

Package Structure:
    app: Command line entry point
    commands: The operations exposed to a front end (detect, list, swap, ...)
    config: Configuration persistence, paths and path validation
    core: Library index, profile scanning, swap engine and process guard

Quick Start:
    Run from command line::

        python -m duna_swap profiles
        python -m duna_swap swap --source 1111 --target 2222 --game 570

    Or programmatically::

        from duna_swap import commands
        installation = commands.detect_installation()
        commands.list_profiles(installation.data_root, installation.install_root)

Configuration:
    - Config file: <config dir>/configuration.xml
    - Log file: <config dir>/duna_swap.log
"""

__version__ = "0.4.0"
__app_name__ = "Duna Swap"
