from setuptools import setup, find_packages
import pathlib
HERE = pathlib.Path(__file__).parent
_version_ns = {}
exec((HERE / "musigcore" / "version.py").read_text(), _version_ns)
__version__ = _version_ns['__version__']
README = (HERE / "README.md").read_text()


setup(
    name="musigcore",
    version=__version__,
    python_requires='>=3.7',
    description="Three round MuSig Schnorr multi-signature protocol engine for python",
    long_description=README,
    long_description_content_type="text/markdown",
    author="rage-proof",
    license="MIT",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
    include_package_data=True,
    packages=find_packages(exclude=["tests"]),
    install_requires=['chacha20poly1305==0.0.3'],
    extras_require={'test': ['pytest']},
)
