from setuptools import setup, find_packages


install_requires = ['pillow', 'jinja2', 'texttable', 'parsedatetime']


setup(
    name='thumbsheet',

    # Versions should comply with PEP440.
    version='1.0.0',

    description='Create video thumbnail sheets from a single ffmpeg pass',
    long_description='',

    author='thumbsheet developers',

    license='MIT',

    keywords='video thumbnail contact sheet montage multimedia ffmpeg',

    packages=find_packages(exclude=['contrib', 'docs', 'tests*']),

    # the VERSION file is read at import time
    package_data={
        'thumbsheet': ['VERSION'],
    },

    python_requires='>=3.7',

    install_requires=install_requires,

    # $ pip install -e .[dev,test]
    extras_require={
        'dev': ['check-manifest'],
        'test': ['pytest', 'coverage', 'numpy'],
    },

    entry_points={
        'console_scripts': [
            'thumbsheet=thumbsheet:main',
        ],
    },
)
