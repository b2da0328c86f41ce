import os

from setuptools import find_packages
from setuptools import setup


HERE = os.path.dirname(os.path.abspath(__file__))


def get_version():
    about = {}
    with open(os.path.join(HERE, "apmtrace", "_version.py")) as f:
        exec(f.read(), about)
    return about["__version__"]


setup(
    name="apmtrace",
    version=get_version(),
    description="Application performance monitoring core: transactions, spans, errors and metrics",
    license="BSD",
    packages=find_packages(exclude=["tests*"]),
    zip_safe=False,
    python_requires=">=3.9",
    install_requires=[
        "attrs>=20",
        "envier~=0.5",
        "psutil>=5.6",
    ],
    extras_require={
        "mongo": ["pymongo>=3.11"],
        "tests": [
            "mock",
            "pymongo>=3.11",
            "pytest",
        ],
    },
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
    ],
)
