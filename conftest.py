"""
Shared Kettle samples for the test suite.
"""
import pytest


LOAD_CUSTOMERS_KTR = """<?xml version="1.0" encoding="UTF-8"?>
<transformation>
  <info>
    <name>load_customers</name>
    <description>Load customers into the warehouse</description>
    <parameters>
      <parameter>
        <name>INPUT_DIR</name>
        <default_value>/data/in</default_value>
        <description>Input folder</description>
      </parameter>
    </parameters>
    <trans_version>1.2</trans_version>
    <created_user>etl</created_user>
    <created_date>2020/01/01 10:00:00.000</created_date>
    <modified_date>2021/02/02 11:00:00.000</modified_date>
  </info>
  <connection>
    <name>warehouse</name>
    <server>db.local</server>
    <type>POSTGRESQL</type>
    <database>dwh</database>
    <port>5432</port>
    <username>etl</username>
  </connection>
  <order>
    <hop><from>Read CSV</from><to>Filter</to><enabled>Y</enabled></hop>
    <hop><from>Filter</from><to>Write DB</to><enabled>Y</enabled></hop>
  </order>
  <step>
    <name>Read CSV</name>
    <type>TextFileInput</type>
    <file>
      <name>${INPUT_DIR}/customers.csv</name>
    </file>
    <GUI><xloc>120</xloc><yloc>80</yloc></GUI>
  </step>
  <step>
    <name>Filter</name>
    <type>FilterRows</type>
    <GUI><xloc>300</xloc><yloc>80</yloc></GUI>
  </step>
  <step>
    <name>Write DB</name>
    <type>TableOutput</type>
    <connection>warehouse</connection>
    <table>customers</table>
    <GUI><xloc>480.5</xloc><yloc>abc</yloc></GUI>
  </step>
</transformation>
"""

MAIN_JOB_KJB = """<?xml version="1.0" encoding="UTF-8"?>
<job>
  <name>main_job</name>
  <description>Nightly load</description>
  <job_version>3</job_version>
  <entries>
    <entry>
      <name>START</name>
      <type>SPECIAL</type>
      <start>Y</start>
      <xloc>50</xloc>
      <yloc>60</yloc>
    </entry>
    <entry>
      <name>Load customers</name>
      <type>TRANS</type>
      <filename>${Internal.Job.Filename.Directory}/load_customers.ktr</filename>
      <xloc>200</xloc>
      <yloc>60</yloc>
    </entry>
    <entry>
      <name>Run cleanup</name>
      <type>JOB</type>
      <jobname>cleanup_job</jobname>
      <xloc>350</xloc>
      <yloc>60</yloc>
    </entry>
    <entry>
      <name>Success</name>
      <type>SUCCESS</type>
      <xloc>500</xloc>
      <yloc>60</yloc>
    </entry>
  </entries>
  <hops>
    <hop>
      <from>START</from><to>Load customers</to>
      <enabled>Y</enabled><evaluation>Y</evaluation><unconditional>Y</unconditional>
    </hop>
    <hop>
      <from>Load customers</from><to>Run cleanup</to>
      <enabled>Y</enabled><evaluation>Y</evaluation><unconditional>N</unconditional>
    </hop>
    <hop>
      <from>Run cleanup</from><to>Success</to>
      <enabled>N</enabled><evaluation>N</evaluation><unconditional>N</unconditional>
    </hop>
  </hops>
</job>
"""

CLEANUP_JOB_KJB = """<?xml version="1.0" encoding="UTF-8"?>
<job>
  <name>cleanup_job</name>
  <entries>
    <entry><name>START</name><type>SPECIAL</type><start>Y</start></entry>
    <entry>
      <name>Truncate staging</name>
      <type>SQL</type>
      <connection>warehouse</connection>
      <sql>TRUNCATE TABLE ${STAGING_SCHEMA}.customers</sql>
    </entry>
  </entries>
  <hops>
    <hop><from>START</from><to>Truncate staging</to><enabled>Y</enabled><unconditional>Y</unconditional></hop>
  </hops>
</job>
"""


@pytest.fixture
def transformation_xml():
    return LOAD_CUSTOMERS_KTR.encode('utf-8')


@pytest.fixture
def job_xml():
    return MAIN_JOB_KJB.encode('utf-8')


@pytest.fixture
def cleanup_job_xml():
    return CLEANUP_JOB_KJB.encode('utf-8')


@pytest.fixture
def folder_files(transformation_xml, job_xml, cleanup_job_xml):
    """A batch where the main job calls the other two files."""
    return [
        ('cleanup_job.kjb', cleanup_job_xml),
        ('load_customers.ktr', transformation_xml),
        ('main_job.kjb', job_xml),
    ]
