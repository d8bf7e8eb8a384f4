"""TwoCCA - two-cent certificate authority.
"""

# pylint: disable=import-outside-toplevel

__version__ = "1.0"


def _library_versions():
    import cryptography
    from cryptography.hazmat.backends.openssl import backend

    parts = ["cryptography %s" % cryptography.__version__]
    parts.append(backend.openssl_version_text())
    return parts


def _version_info():
    """Version plus crypto library details, shown by --version.
    """
    try:
        libs = _library_versions()
    except ImportError:
        libs = ["cryptography missing"]
    return "%s [%s]" % (__version__, "; ".join(libs))


FULL_VERSION = _version_info()
