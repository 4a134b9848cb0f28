from setuptools import setup

with open("VERSION", "r") as r:
    __version__ = r.read().strip()

setup(
    name="dirscan",
    version=__version__,
    description="Summarize directories, fast",
    long_description="",
    packages=["dirscan"],
    install_requires=[
        "humanfriendly",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["dirscan=dirscan.__main__:main"],
    },
    zip_safe=False,
    python_requires=">=3.10",
    classifiers=[
        "Environment :: Console",
        "Topic :: System :: Filesystems",
    ],
)
