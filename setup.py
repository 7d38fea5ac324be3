from setuptools import setup

version = '0.1'

with open("README.md", "r", encoding="utf-8") as f:
    long_descr = f.read()

setup(
    name='pyscp',
    packages=['pyscp'],
    package_data={'pyscp': ['data/*.txt']},
    version=version,
    license='Apache 2.0',
    description='Control Yamaha digital mixing consoles over SCP',
    long_description=long_descr,
    long_description_content_type='text/markdown',
    author='pyscp contributors',
    keywords=['Yamaha', 'SCP', 'CL', 'QL', 'TF', 'Rivage', 'Mixing Console'],
    python_requires='>=3.10',
    extras_require={
        'test': ['pytest>=7.0'],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Multimedia :: Sound/Audio',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3.10'
    ],
)
