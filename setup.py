from setuptools import find_packages, setup

PKG_NAME = "tinydynamo"
about: dict = dict()
exec(open(f"{PKG_NAME}/__about__.py").read(), about)

with open("README.md") as fh:
    long_description = fh.read()


setup(
    name=PKG_NAME,
    version=about["__version__"],
    author=about["__author__"],
    author_email=about["__author_email__"],
    description="A tiny in-process key-value store with a DynamoDB-like item model.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"": ["py.typed"]},
    python_requires=">=3.7",
    install_requires=["boto3 >= 1.9", "typing-extensions >= 3.7",],
    extras_require={"tests": ["pytest >= 6"]},
)
