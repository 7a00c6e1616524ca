########################################################################
# File name: __main__.py
# This file is part of: aiobosh
#
# LICENSE
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program.  If not, see
# <http://www.gnu.org/licenses/>.
#
########################################################################
"""
Obtain a prebound BOSH session from the command line.

The resulting JID, session ID and request ID are printed as JSON object, ready
to be handed to a browser based client which attaches to the session.
"""
import argparse
import asyncio
import configparser
import getpass
import json
import logging
import logging.config
import os
import os.path
import sys

from . import errors
from .handshake import HandshakeDriver


logger = logging.getLogger("aiobosh")


DEFAULTS = {
    "timeout": 10.0,
    "wait": 5,
    "hold": 1,
}


def default_config_path():
    path = os.path.join(
        os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")),
        "aiobosh.ini")
    if not os.path.exists(path):
        return None
    return path


def make_argparser():
    parser = argparse.ArgumentParser(
        prog="python -m aiobosh",
        description="Establish a BOSH session and print jid, sid and rid.",
    )

    parser.add_argument(
        "-c", "--config",
        default=default_config_path(),
        type=argparse.FileType("r"),
        help="Configuration file to read",
    )
    parser.add_argument(
        "-j", "--jid",
        help="JID to authenticate with (only required if not in config)",
    )
    parser.add_argument(
        "-u", "--service-url",
        help="URL of the BOSH connection manager",
    )
    parser.add_argument(
        "-p",
        dest="ask_password",
        action="store_true",
        default=False,
        help="Ask for password on stdio",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each response (default: 10)",
    )
    parser.add_argument(
        "--wait",
        type=int,
        default=None,
        help="BOSH wait attribute (default: 5)",
    )
    parser.add_argument(
        "--hold",
        type=int,
        default=None,
        help="BOSH hold attribute (default: 1)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Check responses structurally instead of by marker substrings",
    )
    parser.add_argument(
        "-v",
        help="Increase verbosity (this has no effect if a logging config"
        " file is specified in the config file)",
        default=0,
        dest="verbosity",
        action="count",
    )
    return parser


def load_config(args):
    config = configparser.ConfigParser()
    if args.config is not None:
        with args.config:
            config.read_file(args.config)
    return config


def configure_logging(config, verbosity):
    if config.has_option("global", "logging"):
        logging.config.fileConfig(config.get("global", "logging"))
    else:
        logging.basicConfig(
            level={
                0: logging.ERROR,
                1: logging.WARNING,
                2: logging.INFO,
            }.get(verbosity, logging.DEBUG)
        )


def _required(args, config, name, prompt):
    value = getattr(args, name)
    if value is not None:
        return value
    try:
        return config.get("global", name)
    except (configparser.NoSectionError,
            configparser.NoOptionError):
        return input(prompt)


def resolve_settings(args, config, *, ask_password=getpass.getpass):
    """
    Merge command line arguments and configuration file into the keyword
    arguments for :class:`~aiobosh.handshake.HandshakeDriver`.

    Command line arguments take precedence over the ``[global]`` section of
    the configuration.
    """
    jid = _required(args, config, "jid", "Account JID> ")
    service_url = _required(args, config, "service_url", "BOSH URL> ")

    if args.ask_password:
        password = ask_password()
    else:
        try:
            jid_sect = jid if jid in config else "global"
            password = config.get(jid_sect, "password")
        except (configparser.NoOptionError,
                configparser.NoSectionError):
            logger.error("when the JID %s is set, password must be set as "
                         "well", jid)
            raise

    settings = {
        "jid": jid,
        "password": password,
        "service_url": service_url,
        "timeout": args.timeout,
        "wait": args.wait,
        "hold": args.hold,
        "strict": args.strict,
    }

    getters = {
        "timeout": config.getfloat,
        "wait": config.getint,
        "hold": config.getint,
        "strict": config.getboolean,
    }
    for key, getter in getters.items():
        if settings[key] is None:
            settings[key] = getter(
                "global", key,
                fallback=DEFAULTS.get(key, False),
            )

    return settings


async def prebind(settings):
    settings = dict(settings)
    driver = HandshakeDriver(
        settings.pop("jid"),
        settings.pop("password"),
        settings.pop("service_url"),
        **settings
    )
    jid, sid, rid = await driver.connect()
    return {"jid": jid, "sid": sid, "rid": rid}


def main(argv=None):
    args = make_argparser().parse_args(argv)
    config = load_config(args)
    configure_logging(config, args.verbosity)

    try:
        settings = resolve_settings(args, config)
    except (configparser.NoOptionError, configparser.NoSectionError):
        return 2

    logger.info("establishing BOSH session for %s at %s",
                settings["jid"], settings["service_url"])

    try:
        result = asyncio.run(prebind(settings))
    except errors.BOSHError as exc:
        logger.error("%s", exc)
        return 1

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
