import io
import re
from setuptools import setup, find_packages


def read_file(filename, **kwargs):
    encoding = kwargs.get("encoding", "utf-8")

    with io.open(filename, encoding=encoding) as f:
        return f.read()


def replace_local_hyperlinks(
        text, base_url="https://github.com/nocmap/nocmap/blob/master/"):
    """Replace local hyperlinks in RST with absolute addresses using the given
    base URL.

    This is used to make links in the long description function correctly
    outside of the repository (e.g. when published on PyPi).
    """
    def get_new_url(url):
        return base_url + url[2:]

    # Anonymous URLs
    for match in re.finditer(r"^__ (?P<url>\./.*)", text, re.MULTILINE):
        orig_url = match.groupdict()["url"]
        text = re.sub("^__ {}".format(re.escape(orig_url)),
                      "__ {}".format(get_new_url(orig_url)),
                      text, flags=re.MULTILINE)

    # Named URLs
    for match in re.finditer(r"^\.\. _(?P<identifier>[^:]*): (?P<url>\./.*)",
                             text, re.MULTILINE):
        identifier = match.groupdict()["identifier"]
        orig_url = match.groupdict()["url"]
        text = re.sub(
            r"^\.\. _{}: {}".format(re.escape(identifier),
                                    re.escape(orig_url)),
            ".. _{}: {}".format(identifier, get_new_url(orig_url)),
            text, flags=re.MULTILINE)

    return text

with open("nocmap/version.py", "r") as f:
    exec(f.read())

setup(
    name="nocmap",
    version=__version__,
    packages=find_packages(exclude=["tests", "tests.*"]),

    # Metadata for PyPi
    url="https://github.com/nocmap/nocmap",
    author="The nocmap Authors",
    description="Energy- and bandwidth-aware mapping of application cores "
                "onto 2D-mesh networks-on-chip",
    long_description=replace_local_hyperlinks(read_file("README.rst")),
    license="GPLv2",
    classifiers=[
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",

        "License :: OSI Approved :: GNU General Public License v2 (GPLv2)",

        "Operating System :: POSIX :: Linux",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: MacOS",

        "Programming Language :: Python :: 3",

        "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
    ],
    keywords="network-on-chip noc mapping placement routing "
             "simulated-annealing",

    # Requirements
    install_requires=["numpy>1.6", "sentinel", "pytz", "psutil"],
    extras_require={
        "test": ["pytest", "mock"],
    },

    # Scripts
    entry_points={
        "console_scripts": [
            "noc-map = nocmap.scripts.noc_map:main",
        ],
    }
)
