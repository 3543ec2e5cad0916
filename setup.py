"""libsyscall lives at <https://github.com/libsyscall/libsyscall>.

libsyscall
----------

Build shell commands, run them blocking, in the foreground or in the
background with a callback.

"""
from setuptools import find_packages, setup

about = {}
with open("src/libsyscall/__about__.py") as fp:
    exec(fp.read(), about)


def read_requirements(path):
    with open(path) as f:
        return [
            line
            for line in f.read().split("\n")
            if line and not line.startswith("#")
        ]


install_reqs = read_requirements("requirements/base.txt")
tests_reqs = read_requirements("requirements/test.txt")
otel_reqs = read_requirements("requirements/otel.txt")

readme = open("README.md", encoding="utf-8").read()


setup(
    name=about["__title__"],
    version=about["__version__"],
    url=about["__github__"],
    download_url=about["__pypi__"],
    project_urls={
        "Documentation": about["__docs__"],
        "Code": about["__github__"],
        "Issue tracker": about["__tracker__"],
    },
    license=about["__license__"],
    author=about["__author__"],
    author_email=about["__email__"],
    description=about["__description__"],
    long_description=readme,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=install_reqs,
    extras_require={
        "test": tests_reqs,
        "otel": otel_reqs,
    },
    entry_points={
        "console_scripts": ["libsyscall = libsyscall.cli:main"],
        "pytest11": ["libsyscall = libsyscall.pytest_plugin"],
    },
    zip_safe=False,
    keywords=about["__title__"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Operating System :: MacOS :: MacOS X",
        "Intended Audience :: Developers",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Utilities",
        "Topic :: System :: Shells",
        "Topic :: Text Editors",
    ],
)
