import subprocess
from wgexporter.common.errors import CollectError
from wgexporter.common.logger import get_logger


logger = get_logger("utils")


def ns_wrap(namespace: str, args: list[str]):
    if namespace:
        return ["ip", "netns", "exec", namespace] + args
    return args


def sudo_wrap(args: list[str], prepend_sudo: bool):
    if prepend_sudo:
        return ["sudo"] + args
    return args


def call_output(args: list[str], timeout: float | None = None) -> str:
    logger.debug('exec: {}'.format(args))
    try:
        result = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=True, encoding='utf-8', timeout=timeout)
    except FileNotFoundError:
        raise CollectError(args, "command not found")
    except subprocess.TimeoutExpired:
        raise CollectError(args, "timed out after {}s".format(timeout))
    except subprocess.CalledProcessError as e:
        raise CollectError(args, "exit status {} ({})".format(e.returncode, (e.stderr or '').strip()))

    if result.stderr:
        logger.debug('stderr of {}: {}'.format(args, result.stderr.strip()))
    return result.stdout


def split_hostport(name: str):
    "[fe80::1%wg0]:51820 -> fe80::1, 51820; 1.2.3.4:51820 -> 1.2.3.4, 51820"

    if name.startswith("["):
        # [ipv6]:port
        parts = name[1:].split(']')
        if len(parts) != 2 or not parts[1].startswith(':'):
            raise ValueError("invalid [ipv6]:port endpoint {!r}".format(name))

        host = parts[0].split('%')[0]
        return host, parts[1][1:]

    host, sep, port = name.rpartition(':')
    if not sep or not host:
        raise ValueError("invalid host:port endpoint {!r}".format(name))
    return host, port


def is_uint(s: str):
    return s.isascii() and s.isdigit()
