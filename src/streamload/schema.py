"""Ontime reference table schema."""

ONTIME_TEMPLATE_NAME = "ontime"
ONTIME_TABLE = "ontime_streaming_load"

ONTIME_TABLE_DDL = """
CREATE TABLE ontime
(
    Year                            INT UNSIGNED NOT NULL,
    Quarter                         TINYINT UNSIGNED NOT NULL,
    Month                           TINYINT UNSIGNED NOT NULL,
    DayofMonth                      TINYINT UNSIGNED NOT NULL,
    DayOfWeek                       TINYINT UNSIGNED NOT NULL,
    FlightDate                      DATE NOT NULL,
    Reporting_Airline               VARCHAR NULL,
    DOT_ID_Reporting_Airline        INT NULL,
    IATA_CODE_Reporting_Airline     VARCHAR NULL,
    Tail_Number                     VARCHAR NULL,
    Flight_Number_Reporting_Airline VARCHAR NULL,
    OriginAirportID                 INT NULL,
    OriginAirportSeqID              INT NULL,
    OriginCityMarketID              INT NULL,
    Origin                          VARCHAR NULL,
    OriginCityName                  VARCHAR NULL,
    OriginState                     VARCHAR NULL,
    OriginStateFips                 VARCHAR NULL,
    OriginStateName                 VARCHAR NULL,
    OriginWac                       INT NULL,
    DestAirportID                   INT NULL,
    DestAirportSeqID                INT NULL,
    DestCityMarketID                INT NULL,
    Dest                            VARCHAR NULL,
    DestCityName                    VARCHAR NULL,
    DestState                       VARCHAR NULL,
    DestStateFips                   VARCHAR NULL,
    DestStateName                   VARCHAR NULL,
    DestWac                         INT NULL,
    CRSDepTime                      INT NULL,
    DepTime                         INT NULL,
    DepDelay                        INT NULL,
    DepDelayMinutes                 INT NULL,
    DepDel15                        INT NULL,
    DepartureDelayGroups            VARCHAR NULL,
    DepTimeBlk                      VARCHAR NULL,
    TaxiOut                         INT NULL,
    WheelsOff                       INT NULL,
    WheelsOn                        INT NULL,
    TaxiIn                          INT NULL,
    CRSArrTime                      INT NULL,
    ArrTime                         INT NULL,
    ArrDelay                        INT NULL,
    ArrDelayMinutes                 INT NULL,
    ArrDel15                        INT NULL,
    ArrivalDelayGroups              INT NULL,
    ArrTimeBlk                      VARCHAR NULL,
    Cancelled                       TINYINT UNSIGNED NULL,
    CancellationCode                VARCHAR NULL,
    Diverted                        TINYINT UNSIGNED NULL,
    CRSElapsedTime                  INT NULL,
    ActualElapsedTime               INT NULL,
    AirTime                         INT NULL,
    Flights                         INT NULL,
    Distance                        INT NULL,
    DistanceGroup                   TINYINT UNSIGNED NULL,
    CarrierDelay                    INT NULL,
    WeatherDelay                    INT NULL,
    NASDelay                        INT NULL,
    SecurityDelay                   INT NULL,
    LateAircraftDelay               INT NULL,
    FirstDepTime                    VARCHAR NULL,
    TotalAddGTime                   VARCHAR NULL,
    LongestAddGTime                 VARCHAR NULL,
    DivAirportLandings              VARCHAR NULL,
    DivReachedDest                  VARCHAR NULL,
    DivActualElapsedTime            VARCHAR NULL,
    DivArrDelay                     VARCHAR NULL,
    DivDistance                     VARCHAR NULL,
    Div1Airport                     VARCHAR NULL,
    Div1AirportID                   INT NULL,
    Div1AirportSeqID                INT NULL,
    Div1WheelsOn                    VARCHAR NULL,
    Div1TotalGTime                  VARCHAR NULL,
    Div1LongestGTime                VARCHAR NULL,
    Div1WheelsOff                   VARCHAR NULL,
    Div1TailNum                     VARCHAR NULL,
    Div2Airport                     VARCHAR NULL,
    Div2AirportID                   INT NULL,
    Div2AirportSeqID                INT NULL,
    Div2WheelsOn                    VARCHAR NULL,
    Div2TotalGTime                  VARCHAR NULL,
    Div2LongestGTime                VARCHAR NULL,
    Div2WheelsOff                   VARCHAR NULL,
    Div2TailNum                     VARCHAR NULL,
    Div3Airport                     VARCHAR NULL,
    Div3AirportID                   INT NULL,
    Div3AirportSeqID                INT NULL,
    Div3WheelsOn                    VARCHAR NULL,
    Div3TotalGTime                  VARCHAR NULL,
    Div3LongestGTime                VARCHAR NULL,
    Div3WheelsOff                   VARCHAR NULL,
    Div3TailNum                     VARCHAR NULL,
    Div4Airport                     VARCHAR NULL,
    Div4AirportID                   INT NULL,
    Div4AirportSeqID                INT NULL,
    Div4WheelsOn                    VARCHAR NULL,
    Div4TotalGTime                  VARCHAR NULL,
    Div4LongestGTime                VARCHAR NULL,
    Div4WheelsOff                   VARCHAR NULL,
    Div4TailNum                     VARCHAR NULL,
    Div5Airport                     VARCHAR NULL,
    Div5AirportID                   INT NULL,
    Div5AirportSeqID                INT NULL,
    Div5WheelsOn                    VARCHAR NULL,
    Div5TotalGTime                  VARCHAR NULL,
    Div5LongestGTime                VARCHAR NULL,
    Div5WheelsOff                   VARCHAR NULL,
    Div5TailNum                     VARCHAR NULL
);
"""

ONTIME_VERIFY_SQL = "select count(1), avg(Year), sum(DayOfWeek) from {table}"
